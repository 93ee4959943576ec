"""Test suite for the Herald notification dispatcher.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Tests against real SQLite files, subprocesses and mocked HTTP
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementations of FindingSourcePort, SettingsStorePort, etc.
   - Used by core unit tests
"""
