"""
Main entry point for running zonetiler as a module.

Usage:
    python -m zonetiler OUTPUT.png [--config FILE] [--screen-name NAME] [--size WxH]
"""

from .tiler import main

if __name__ == "__main__":
    import sys

    sys.exit(main())
