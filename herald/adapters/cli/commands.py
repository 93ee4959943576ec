"""CLI command implementations for Herald management.

Provides human-initiated actions through the command-line interface.

This adapter maps CLI commands to ManagementPort operations. It is the
outer error boundary: every command returns a dictionary with
``"status": "success"`` or ``"status": "error"`` instead of raising.
"""

import logging
from typing import Any

import aiosqlite
import httpx

from herald.core.models import (
    CheckResult,
    Destination,
    DestinationKind,
    NotifyConfig,
)
from herald.core.ports import ManagementPort

logger = logging.getLogger(__name__)

# Failures a command reports back to the user rather than raising
COMMAND_ERRORS = (
    ValueError,
    RuntimeError,
    OSError,
    httpx.HTTPError,
    aiosqlite.Error,
)


def notify_config_to_dict(config: NotifyConfig) -> dict[str, Any]:
    """Render destinations as a JSON-friendly dictionary."""
    return {
        "default": config.default_destination,
        "default_kind": config.default_kind.value,
        "per_reporter": {
            reporter: {"destination": dest.value, "kind": dest.kind.value}
            for reporter, dest in config.per_reporter.items()
        },
    }


def notify_config_from_dict(data: dict[str, Any]) -> NotifyConfig:
    """Build destinations from CLI arguments.

    Per-reporter entries may be a plain string (uses the default kind)
    or an object with "destination" and optional "kind".

    Raises:
        ValueError: If a kind is unknown or an entry is malformed.
    """
    default_kind = DestinationKind(data.get("default_kind", "id"))
    per_reporter: dict[str, Destination] = {}
    for reporter, entry in (data.get("per_reporter") or {}).items():
        if isinstance(entry, str):
            per_reporter[reporter] = Destination(value=entry, kind=default_kind)
        elif isinstance(entry, dict) and "destination" in entry:
            per_reporter[reporter] = Destination(
                value=entry["destination"],
                kind=DestinationKind(entry.get("kind", default_kind.value)),
            )
        else:
            raise ValueError(f"Invalid destination for reporter {reporter!r}: {entry!r}")

    return NotifyConfig(
        default_destination=data.get("default", ""),
        default_kind=default_kind,
        per_reporter=per_reporter,
    )


def check_result_to_dict(result: CheckResult) -> dict[str, Any]:
    """Render a check summary as a JSON-friendly dictionary."""
    return {
        "findings_fetched": result.findings_fetched,
        "findings_sent": result.findings_sent,
        "total_sent_log": result.total_sent_log,
        "timestamp": result.timestamp.isoformat(),
        "groups": [
            {
                "reporter": outcome.reporter,
                "destination": outcome.destination.value,
                "findings": outcome.finding_count,
                "success": outcome.success,
                "timed_out": outcome.timed_out,
                "error": outcome.error,
            }
            for outcome in result.outcomes
        ],
    }


class CLICommandHandler:
    """Handles CLI commands by delegating to ManagementPort."""

    def __init__(self, management: ManagementPort):
        """Initialize the CLI command handler.

        Args:
            management: ManagementPort implementation to execute commands.
        """
        self.management = management

    @staticmethod
    def _error(operation: str, error: Exception) -> dict[str, Any]:
        logger.error(f"Failed to {operation.replace('_', ' ')}: {error}")
        return {"status": "error", "operation": operation, "message": str(error)}

    async def get_config(self) -> dict[str, Any]:
        """Show configured destinations."""
        try:
            config = await self.management.get_notify_config()
            return {
                "status": "success",
                "operation": "get_config",
                "data": notify_config_to_dict(config),
            }
        except COMMAND_ERRORS as e:
            return self._error("get_config", e)

    async def set_config(self, data: dict[str, Any]) -> dict[str, Any]:
        """Replace configured destinations."""
        try:
            config = notify_config_from_dict(data)
            await self.management.save_notify_config(config)
            return {
                "status": "success",
                "operation": "set_config",
                "data": notify_config_to_dict(config),
            }
        except COMMAND_ERRORS as e:
            return self._error("set_config", e)

    async def list_excluded(self) -> dict[str, Any]:
        """Show the exclusion list."""
        try:
            excluded = await self.management.get_excluded()
            return {"status": "success", "operation": "list_excluded", "data": excluded}
        except COMMAND_ERRORS as e:
            return self._error("list_excluded", e)

    async def exclude(self, entry: str) -> dict[str, Any]:
        """Exclude a finding ID or reporter name."""
        try:
            await self.management.add_excluded(entry)
            return {
                "status": "success",
                "operation": "exclude",
                "message": f"Excluded {entry}",
            }
        except COMMAND_ERRORS as e:
            return self._error("exclude", e)

    async def include(self, entry: str) -> dict[str, Any]:
        """Remove an entry from the exclusion list."""
        try:
            await self.management.remove_excluded(entry)
            return {
                "status": "success",
                "operation": "include",
                "message": f"No longer excluding {entry}",
            }
        except COMMAND_ERRORS as e:
            return self._error("include", e)

    async def get_delay(self) -> dict[str, Any]:
        """Show the check delay."""
        try:
            delay = await self.management.get_check_delay()
            return {"status": "success", "operation": "get_delay", "data": delay}
        except COMMAND_ERRORS as e:
            return self._error("get_delay", e)

    async def set_delay(self, delay_ms: int) -> dict[str, Any]:
        """Change the check delay and reschedule."""
        try:
            await self.management.save_check_delay(int(delay_ms))
            return {
                "status": "success",
                "operation": "set_delay",
                "message": f"Checking every {delay_ms}ms",
            }
        except COMMAND_ERRORS as e:
            return self._error("set_delay", e)

    async def list_sent(self) -> dict[str, Any]:
        """Show the sent-log."""
        try:
            entries = await self.management.get_sent_log()
            return {
                "status": "success",
                "operation": "list_sent",
                "data": [
                    {"finding_id": e.finding_id, "timestamp": e.timestamp}
                    for e in entries
                ],
            }
        except COMMAND_ERRORS as e:
            return self._error("list_sent", e)

    async def clear_sent(self) -> dict[str, Any]:
        """Forget every sent finding."""
        try:
            await self.management.clear_sent_log()
            return {
                "status": "success",
                "operation": "clear_sent",
                "message": "Sent findings cleared",
            }
        except COMMAND_ERRORS as e:
            return self._error("clear_sent", e)

    async def get_provider(self) -> dict[str, Any]:
        """Show the provider config and whether it is custom."""
        try:
            content = await self.management.get_provider_config()
            use_custom = await self.management.get_use_custom_provider_config()
            return {
                "status": "success",
                "operation": "get_provider",
                "data": {"use_custom": use_custom, "content": content},
            }
        except COMMAND_ERRORS as e:
            return self._error("get_provider", e)

    async def set_provider(self, content: str) -> dict[str, Any]:
        """Replace the provider config document."""
        try:
            await self.management.save_provider_config(content)
            return {
                "status": "success",
                "operation": "set_provider",
                "message": "Provider config saved",
            }
        except COMMAND_ERRORS as e:
            return self._error("set_provider", e)

    async def set_use_custom(self, use_custom: bool) -> dict[str, Any]:
        """Toggle custom provider config."""
        try:
            await self.management.save_use_custom_provider_config(bool(use_custom))
            return {
                "status": "success",
                "operation": "set_use_custom",
                "data": bool(use_custom),
            }
        except COMMAND_ERRORS as e:
            return self._error("set_use_custom", e)

    async def send(self, message: str, reporter: str | None = None) -> dict[str, Any]:
        """Send a one-off notification."""
        try:
            await self.management.send_notification(message, reporter)
            return {
                "status": "success",
                "operation": "send",
                "message": "Notification sent",
            }
        except COMMAND_ERRORS as e:
            return self._error("send", e)

    async def check(self) -> dict[str, Any]:
        """Run a manual check."""
        try:
            result = await self.management.manual_check()
            return {
                "status": "success",
                "operation": "check",
                "message": "Findings checked successfully",
                "data": check_result_to_dict(result),
            }
        except COMMAND_ERRORS as e:
            return self._error("check", e)


async def run_command(
    handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Maps command names to handler methods.

    Args:
        handler: CLICommandHandler to dispatch to.
        command: Command name.
        args: Dictionary of command arguments.

    Returns:
        Dictionary with command result.

    Raises:
        ValueError: If the command is not recognized or a required
            argument is missing.
    """

    def _require(name: str) -> Any:
        if name not in args:
            raise ValueError(f"Missing required parameter: {name}")
        return args[name]

    if command == "config":
        return await handler.get_config()
    elif command == "set-config":
        return await handler.set_config(args)
    elif command == "excluded":
        return await handler.list_excluded()
    elif command == "exclude":
        return await handler.exclude(_require("entry"))
    elif command == "include":
        return await handler.include(_require("entry"))
    elif command == "delay":
        return await handler.get_delay()
    elif command == "set-delay":
        return await handler.set_delay(_require("delay_ms"))
    elif command == "sent":
        return await handler.list_sent()
    elif command == "clear-sent":
        return await handler.clear_sent()
    elif command == "provider":
        return await handler.get_provider()
    elif command == "set-provider":
        return await handler.set_provider(_require("content"))
    elif command == "use-custom":
        return await handler.set_use_custom(_require("enabled"))
    elif command == "send":
        return await handler.send(_require("message"), args.get("reporter"))
    elif command == "check":
        return await handler.check()
    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")
