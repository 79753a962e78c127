"""
Package entry point.

Allows running the application via:

    python -m lmswatch

This simply forwards execution to lmswatch.cli.main().
"""

from lmswatch.cli import main

if __name__ == "__main__":
    main()
