"""
Main entry point for running the package as a module.

Usage:
    python -m galsync preview /path/to/workspace
    python -m galsync publish /path/to/workspace
    python -m galsync validate
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
