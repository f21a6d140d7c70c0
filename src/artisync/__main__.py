"""Entry point for running Artisync as a module.

Usage:
    python -m artisync [command] [options]

Example:
    python -m artisync hook post-merge 0
    python -m artisync analyze HEAD~3 HEAD
"""

from artisync.cli import app

if __name__ == "__main__":
    app()
