"""Command line interface for TidyFS."""
