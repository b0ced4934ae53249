"""Command line interface for travel-rules."""

from travel_rules.cli.main import cli, main

__all__ = ["cli", "main"]
