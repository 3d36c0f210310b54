"""
Loader App - JSONL Import into SQLite

Responsibilities:
- Stream homeowner, portal-user or allow-list JSONL files line by line
- Validate each record against the Pydantic schemas
- Persist valid records to SQLite, count and log invalid lines

Database Schema:
- homeowners(id, tenant_id, first_name, last_name, inactive)
- portal_users(id, homeowner_id, tenant_id, is_active, email)
- filtered_homeowners(list_name, homeowner_id)
"""
