"""Censys command line interface."""

__version__ = "0.4.0"
