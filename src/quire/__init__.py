"""Quire - local index, retrieval and insights for a markdown journal."""

__version__ = "0.1.0"
