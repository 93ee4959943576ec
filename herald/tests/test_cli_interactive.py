"""Tests for interactive CLI loop functionality.

Covers:
- _run_cli_interactive: REPL-like command loop
- EOF/KeyboardInterrupt handling
- JSON command parsing
"""

import json
from unittest.mock import patch

import httpx
import pytest

from herald.adapters.cli.commands import CLICommandHandler
from herald.adapters.source.graphql import GraphQLFindingSource
from herald.core.check_service import CheckService
from herald.core.dispatch import Dispatcher
from herald.core.management_service import ManagementService
from herald.main import _run_cli_interactive
from herald.tests.fakes import (
    FakeCheckPort,
    FakeEventSink,
    FakeNotifier,
    FakeProviderConfigFiles,
    FakeSentLogStore,
    FakeSettingsStore,
)


@pytest.fixture
def settings() -> FakeSettingsStore:
    return FakeSettingsStore()


@pytest.fixture
def handler(settings: FakeSettingsStore) -> CLICommandHandler:
    management = ManagementService(
        settings=settings,
        sent_log=FakeSentLogStore(),
        notifier=FakeNotifier(),
        provider_files=FakeProviderConfigFiles(),
        check=FakeCheckPort(),
    )
    return CLICommandHandler(management)


def printed_json(mock_print) -> list[dict]:
    results = []
    for call in mock_print.call_args_list:
        try:
            results.append(json.loads(call.args[0]))
        except (json.JSONDecodeError, IndexError, TypeError):
            continue
    return results


@pytest.mark.asyncio
class TestInteractiveCLILoop:
    """Test suite for interactive CLI loop."""

    async def test_cli_reads_and_executes_commands(
        self, handler: CLICommandHandler, settings: FakeSettingsStore
    ) -> None:
        """Commands in 'command args_json' format are executed."""
        commands = [
            'exclude {"entry": "f1"}',
            "excluded",
            "exit",
        ]

        with patch("builtins.input", side_effect=commands), patch("builtins.print") as mock_print:
            await _run_cli_interactive(handler)

        assert settings.excluded == ["f1"]
        results = printed_json(mock_print)
        assert results[-1]["data"] == ["f1"]

    async def test_cli_handles_json_parse_errors(
        self, handler: CLICommandHandler, settings: FakeSettingsStore
    ) -> None:
        """Malformed JSON is reported and the loop continues."""
        commands = [
            "exclude not-valid-json",
            'exclude ["f1"]',
            'exclude {"entry": "f2"}',
            "exit",
        ]

        with patch("builtins.input", side_effect=commands):
            await _run_cli_interactive(handler)

        assert settings.excluded == ["f2"]

    async def test_cli_reports_unknown_command(self, handler: CLICommandHandler) -> None:
        """Unknown commands print an error result."""
        with patch("builtins.input", side_effect=["bogus", "exit"]), patch(
            "builtins.print"
        ) as mock_print:
            await _run_cli_interactive(handler)

        results = printed_json(mock_print)
        assert results[0]["status"] == "error"
        assert "Unknown command" in results[0]["message"]

    async def test_cli_reports_command_errors(
        self, handler: CLICommandHandler, settings: FakeSettingsStore
    ) -> None:
        """A rejected delay prints an error status."""
        with patch(
            "builtins.input", side_effect=['set-delay {"delay_ms": 500}', "exit"]
        ), patch("builtins.print") as mock_print:
            await _run_cli_interactive(handler)

        assert printed_json(mock_print)[0]["status"] == "error"
        assert settings.check_delay is None

    async def test_cli_handles_eof(self, handler: CLICommandHandler) -> None:
        """EOF (Ctrl+D) exits the loop."""

        def input_with_eof(_: str) -> str:
            raise EOFError()

        with patch("builtins.input", side_effect=input_with_eof):
            await _run_cli_interactive(handler)

    async def test_cli_skips_blank_lines_and_shows_help(self, handler: CLICommandHandler) -> None:
        """Blank lines are ignored and help is printed."""
        with patch("builtins.input", side_effect=["", "help", "exit"]), patch(
            "builtins.print"
        ) as mock_print:
            await _run_cli_interactive(handler)

        assert any("Available Commands" in str(call.args[0]) for call in mock_print.call_args_list)

    async def test_cli_survives_unreachable_source(self, settings: FakeSettingsStore) -> None:
        """A manual check against a refused endpoint prints an error and the loop goes on."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = GraphQLFindingSource(
            api_url="http://localhost:8080/graphql",
            transport=httpx.MockTransport(refuse),
        )
        sent_log = FakeSentLogStore()
        notifier = FakeNotifier()
        provider_files = FakeProviderConfigFiles()
        check = CheckService(
            source=source,
            settings=settings,
            sent_log=sent_log,
            dispatcher=Dispatcher(notifier),
            provider_files=provider_files,
            events=FakeEventSink(),
        )
        handler = CLICommandHandler(
            ManagementService(
                settings=settings,
                sent_log=sent_log,
                notifier=notifier,
                provider_files=provider_files,
                check=check,
            )
        )

        try:
            with patch("builtins.input", side_effect=["check", "config", "exit"]), patch(
                "builtins.print"
            ) as mock_print:
                await _run_cli_interactive(handler)
        finally:
            await source.close()

        results = printed_json(mock_print)
        assert results[0]["status"] == "error"
        assert "connection refused" in results[0]["message"]
        assert results[1]["status"] == "success"
        assert notifier.invocations == []

    async def test_cli_catches_unexpected_errors(
        self, handler: CLICommandHandler, settings: FakeSettingsStore
    ) -> None:
        """Errors outside the command error set are printed rather than raised."""
        settings.should_fail_reads = True
        settings.read_error = KeyError("notify_ids")

        with patch("builtins.input", side_effect=["config", "exit"]), patch(
            "builtins.print"
        ) as mock_print:
            await _run_cli_interactive(handler)

        results = printed_json(mock_print)
        assert results[0]["status"] == "error"
        assert "notify_ids" in results[0]["message"]
