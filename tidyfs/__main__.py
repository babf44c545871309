"""Main entry point for TidyFS.

This allows the package to be run as:
    python -m tidyfs
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()
