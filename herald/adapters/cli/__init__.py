"""CLI adapter for Herald management commands."""

from .commands import CLICommandHandler, run_command

__all__ = ["CLICommandHandler", "run_command"]
