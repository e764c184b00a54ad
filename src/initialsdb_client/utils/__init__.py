"""Shared client utilities."""
