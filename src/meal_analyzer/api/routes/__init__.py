"""API routes."""

from . import analyze, providers

__all__ = ["analyze", "providers"]
