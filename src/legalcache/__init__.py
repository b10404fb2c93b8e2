"""Caching core for the legal assistant backend."""

__version__ = "0.1.0"
