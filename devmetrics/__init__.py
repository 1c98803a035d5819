"""DevMetrics: API request tracking and analytics backend."""

__version__ = "1.0.0"
