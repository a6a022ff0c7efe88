"""Bouwdepot withdrawal document validation."""

__version__ = "0.1.0"
