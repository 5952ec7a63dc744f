"""
Package entry point.

Allows running the application via:

    python -m sheetcal publish

This simply forwards execution to sheetcal.cli.main().
"""

from sheetcal.cli import main

if __name__ == "__main__":
    main()
