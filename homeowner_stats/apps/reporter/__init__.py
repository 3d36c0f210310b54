"""
Reporter App - Portal User Overview Statistics

Responsibilities:
- Parse filter criteria from the command line (IDs, ID file or stored allow-list)
- Compute statistics against the SQLite homeowner and portal-user tables
- Print the StatisticsResult as JSON on stdout
- Optionally publish a statistics_computed event to Redis Pub/Sub

Output:
- stdout: {"total": ..., "with_portal": ..., "without_portal": ..., "inactive_portal": ..., "ratios": {...}}
- Redis event (with --publish): channel=stats.portal_users, payload={type, tenant_id, result, ts}
"""
