"""Exception handlers producing the standard error body."""
