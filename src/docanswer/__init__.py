"""Grounded answers from uploaded documents."""

__version__ = "0.1.0"
