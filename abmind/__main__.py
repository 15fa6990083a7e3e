"""
Package entry point.

Allows running the application via:

    python -m abmind

This simply forwards execution to abmind.cli.main().
"""

from abmind.cli import main

if __name__ == "__main__":
    main()
