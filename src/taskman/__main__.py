"""Main entry point for taskman CLI.

Supports both direct invocation (`python -m taskman`) and package entry point.
"""

from taskman.cli import cli

if __name__ == "__main__":
    cli()
