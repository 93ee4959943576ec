"""Event sink adapters for findings-sent events (log, stdout)."""
