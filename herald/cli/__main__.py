"""CLI entry point.

Allows running the CLI as a module: python -m herald.cli
"""

from herald.cli import app

if __name__ == "__main__":
    app()
