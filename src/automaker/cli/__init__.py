"""Command-line interface for Automaker."""
