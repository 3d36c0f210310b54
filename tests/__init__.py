"""
Tests Package - Unit and Integration Tests

Test structure:
- tests/conftest.py - shared homeowner / portal-user fixtures
- tests/test_*.py - unit tests per module, SQLite tests use tmp_path databases

Async code is driven with asyncio.run inside plain pytest tests.
"""
