"""Open House backend service for student founders."""

__version__ = "0.1.0"
