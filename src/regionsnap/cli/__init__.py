"""regionsnap Command Line Interface.

Usage:
    python -m regionsnap.cli.main --help
    python -m regionsnap.cli.main analyze screenshot.png -p 10,10 -p 200,80

Or via the installed entry point:
    regionsnap --help
"""

from .main import main

__all__ = ["main"]
