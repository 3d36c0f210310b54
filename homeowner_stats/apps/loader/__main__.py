"""
Loader Module Entry Point

Allows execution via: python -m homeowner_stats.apps.loader
"""

import sys

from homeowner_stats.apps.loader.importer import main

if __name__ == "__main__":
    sys.exit(main())
