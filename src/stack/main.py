"""Main entry point for the Stack CLI.

Usage:
    python -m stack.main --help
    stack --help  # If installed via pip/uv
"""

from stack.cli import main

if __name__ == "__main__":
    main()
