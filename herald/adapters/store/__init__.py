"""Settings and sent-log store adapters.

Implementations:
- SQLite (key/value config table, aiosqlite)
"""
