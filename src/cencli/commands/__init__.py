"""Command modules for the censys CLI."""
