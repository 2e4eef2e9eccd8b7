"""Command-line interface for the Calyptia CLI."""
