"""
Homeowner Stats - Portal User Overview Statistics

Joins homeowner records against a caller-supplied allow-list, left-joins the
eligible set against portal-user accounts and reports overview counts.

Packages:
- homeowner_stats.services.statistics - query engine, aggregator, service
- homeowner_stats.utils - config, logging, schemas, errors, SQLite, Redis
- homeowner_stats.apps - reporter and loader command-line apps
"""

__version__ = "0.1.0"
