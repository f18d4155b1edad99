"""Core configuration, errors and cancellation."""
