"""External adapters for the Herald notification dispatcher.

This package contains all external dependencies (GraphQL over HTTP, SQLite,
the notify binary, the file system, etc.) and provides implementations of
the core port interfaces.

Adapter Organization:

- source/: Adapters for fetching findings (GraphQL API)
- store/: Adapters for settings and sent-log persistence (SQLite)
- notifier/: Adapters for running notify and managing its provider config
- events/: Adapters for publishing findings-sent events
- scheduler/: Adapters for driving the check loop (interval timer)
- cli/: Command-line interface and management commands
"""
