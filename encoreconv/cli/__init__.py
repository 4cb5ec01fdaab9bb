"""Command-line interface for encoreconv."""
