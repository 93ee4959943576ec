"""Notifier adapters.

- notify_cli: runs the ProjectDiscovery notify binary
- provider_files: writes and reads notify provider config files
"""
