"""Validus: voice assistant front-end with fuzzy canned replies."""

__version__ = "0.1.0"
