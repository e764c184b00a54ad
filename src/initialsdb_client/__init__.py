"""Asynchronous client for the initialsDB immutable message board."""

__version__ = "0.1.0"
