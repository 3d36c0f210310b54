"""
Reporter Module Entry Point

Allows execution via: python -m homeowner_stats.apps.reporter
"""

import asyncio
import sys

from homeowner_stats.apps.reporter.runner import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
