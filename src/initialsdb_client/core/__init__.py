"""Core configuration, errors and proof-of-work primitives."""
