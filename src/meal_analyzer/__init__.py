"""Meal nutrition analysis across multiple AI providers."""

__version__ = "1.0.0"
