"""
Exelook Entry Point
====================

Allows running the CLI via: python -m exelook
"""

from exelook.cli import main

if __name__ == "__main__":
    main()
