"""Terminal client for a real-time chat gateway."""

__version__ = "0.1.0"
