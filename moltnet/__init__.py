"""Moltbook network collector."""

__version__ = "0.1.0"
