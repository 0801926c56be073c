"""Entry point for running the init pipeline directly.

Usage: python -m init_kit <command> [options]
"""

import sys

from init_kit.cli import main

if __name__ == "__main__":
    sys.exit(main())
