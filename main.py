#!/usr/bin/env python3
"""
Command-line entry point for readercore.

Equivalent to the installed ``readercore`` console script:

    python main.py article.html --format json
"""

from readercore.cli import main

if __name__ == "__main__":
    main()
