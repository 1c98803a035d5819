"""API key and admin credential handling."""
