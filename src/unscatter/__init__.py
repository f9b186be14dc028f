"""Request governance client for the Unscatter task-planning service."""

__version__ = "0.1.0"
