"""Integration tests for adapter implementations.

These exercise real SQLite databases, child processes and mocked HTTP
transports rather than in-memory fakes.
"""
