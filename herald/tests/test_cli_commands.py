"""Tests for CLI command handling.

Commands run against a real ManagementService and CheckService wired to
in-memory fakes, so each test covers the path from command name to
stored state.
"""

import sqlite3

import httpx
import pytest

from herald.adapters.cli.commands import (
    CLICommandHandler,
    notify_config_from_dict,
    notify_config_to_dict,
    run_command,
)
from herald.adapters.source.graphql import GraphQLFindingSource
from herald.core.check_service import CheckService
from herald.core.dispatch import Dispatcher
from herald.core.management_service import ManagementService
from herald.core.models import Destination, DestinationKind, Finding, NotifyConfig, SentFinding
from herald.tests.fakes import (
    FakeEventSink,
    FakeFindingSource,
    FakeNotifier,
    FakeProviderConfigFiles,
    FakeSentLogStore,
    FakeSettingsStore,
)

NOW = 1_700_000_000_000


class Context:
    """Management stack wired to fakes."""

    def __init__(self, source=None):
        self.source = source or FakeFindingSource()
        self.settings = FakeSettingsStore()
        self.sent_log = FakeSentLogStore()
        self.notifier = FakeNotifier()
        self.provider_files = FakeProviderConfigFiles()
        self.events = FakeEventSink()
        self.delay_changes: list[int] = []

        check = CheckService(
            source=self.source,
            settings=self.settings,
            sent_log=self.sent_log,
            dispatcher=Dispatcher(self.notifier),
            provider_files=self.provider_files,
            events=self.events,
            clock=lambda: NOW,
        )

        async def on_delay_changed(delay_ms: int) -> None:
            self.delay_changes.append(delay_ms)

        self.management = ManagementService(
            settings=self.settings,
            sent_log=self.sent_log,
            notifier=self.notifier,
            provider_files=self.provider_files,
            check=check,
            on_delay_changed=on_delay_changed,
        )
        self.handler = CLICommandHandler(self.management)


@pytest.fixture
def ctx() -> Context:
    return Context()


class TestNotifyConfigConversion:
    """Tests for CLI destination parsing."""

    def test_string_entries_use_default_kind(self):
        config = notify_config_from_dict(
            {"default": "slack", "default_kind": "provider", "per_reporter": {"XSS": "discord"}}
        )

        assert config.default == Destination("slack", DestinationKind.PROVIDER)
        assert config.per_reporter["XSS"] == Destination("discord", DestinationKind.PROVIDER)

    def test_object_entries(self):
        config = notify_config_from_dict(
            {"default": "team", "per_reporter": {"XSS": {"destination": "x", "kind": "provider"}}}
        )

        assert config.per_reporter["XSS"] == Destination("x", DestinationKind.PROVIDER)
        assert config.default_kind is DestinationKind.ID

    def test_malformed_entry_rejected(self):
        with pytest.raises(ValueError):
            notify_config_from_dict({"per_reporter": {"XSS": 42}})

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            notify_config_from_dict({"default_kind": "email"})

    def test_to_dict(self):
        config = NotifyConfig(default_destination="team", per_reporter={"XSS": Destination("x")})

        assert notify_config_to_dict(config) == {
            "default": "team",
            "default_kind": "id",
            "per_reporter": {"XSS": {"destination": "x", "kind": "id"}},
        }


@pytest.mark.asyncio
class TestCommands:
    """Tests for run_command dispatch."""

    async def test_set_and_get_config(self, ctx: Context):
        result = await run_command(
            ctx.handler, "set-config", {"default": "team", "per_reporter": {"XSS": "xss-team"}}
        )
        assert result["status"] == "success"

        result = await run_command(ctx.handler, "config", {})

        assert result["data"]["default"] == "team"
        assert result["data"]["per_reporter"]["XSS"]["destination"] == "xss-team"

    async def test_set_config_error(self, ctx: Context):
        result = await run_command(ctx.handler, "set-config", {"default_kind": "pager"})

        assert result["status"] == "error"
        assert result["operation"] == "set_config"

    async def test_exclude_and_include(self, ctx: Context):
        await run_command(ctx.handler, "exclude", {"entry": "f1"})
        await run_command(ctx.handler, "exclude", {"entry": "XSS"})
        await run_command(ctx.handler, "include", {"entry": "f1"})

        result = await run_command(ctx.handler, "excluded", {})

        assert result["data"] == ["XSS"]

    async def test_exclude_blank_is_error(self, ctx: Context):
        result = await run_command(ctx.handler, "exclude", {"entry": ""})
        assert result["status"] == "error"

    async def test_set_delay(self, ctx: Context):
        result = await run_command(ctx.handler, "set-delay", {"delay_ms": 30000})

        assert result["status"] == "success"
        assert ctx.delay_changes == [30000]
        assert (await run_command(ctx.handler, "delay", {}))["data"] == 30000

    async def test_set_delay_below_minimum(self, ctx: Context):
        result = await run_command(ctx.handler, "set-delay", {"delay_ms": 500})

        assert result["status"] == "error"
        assert result["message"] == "Delay must be at least 1000ms (1 second)"
        assert ctx.settings.check_delay is None
        assert ctx.delay_changes == []

    async def test_sent_and_clear(self, ctx: Context):
        ctx.sent_log.entries = [SentFinding("f1", NOW)]

        result = await run_command(ctx.handler, "sent", {})
        assert result["data"] == [{"finding_id": "f1", "timestamp": NOW}]

        await run_command(ctx.handler, "clear-sent", {})
        assert ctx.sent_log.entries == []

    async def test_provider_commands(self, ctx: Context):
        await run_command(ctx.handler, "set-provider", {"content": "slack: []"})
        await run_command(ctx.handler, "use-custom", {"enabled": True})

        result = await run_command(ctx.handler, "provider", {})

        assert result["data"] == {"use_custom": True, "content": "slack: []"}

    async def test_send(self, ctx: Context):
        ctx.settings.notify_config = NotifyConfig(default_destination="team")

        result = await run_command(ctx.handler, "send", {"message": "hello"})

        assert result["status"] == "success"
        assert ctx.notifier.messages() == ["hello"]

    async def test_send_without_destination(self, ctx: Context):
        result = await run_command(ctx.handler, "send", {"message": "hello"})

        assert result["status"] == "error"
        assert result["message"] == "No notify IDs configured"

    async def test_check(self, ctx: Context):
        ctx.settings.notify_config = NotifyConfig(default_destination="team")
        ctx.source.set_findings(
            [Finding(id="f1", title="t", reporter="XSS", timestamp=NOW - 1000)]
        )

        result = await run_command(ctx.handler, "check", {})

        assert result["status"] == "success"
        assert result["message"] == "Findings checked successfully"
        assert result["data"]["findings_sent"] == 1
        assert result["data"]["groups"][0]["reporter"] == "XSS"

    async def test_check_failure(self, ctx: Context):
        ctx.source.set_should_fail(True)

        result = await run_command(ctx.handler, "check", {})

        assert result["status"] == "error"
        assert "GraphQL query failed" in result["message"]

    async def test_missing_parameter(self, ctx: Context):
        with pytest.raises(ValueError, match="Missing required parameter: entry"):
            await run_command(ctx.handler, "exclude", {})

    async def test_unknown_command(self, ctx: Context):
        with pytest.raises(ValueError, match="Unknown command"):
            await run_command(ctx.handler, "frobnicate", {})


def unreachable_source() -> GraphQLFindingSource:
    """GraphQL source whose endpoint refuses every connection."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return GraphQLFindingSource(
        api_url="http://localhost:8080/graphql",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestLibraryErrors:
    """Errors raised by adapter libraries become error results."""

    async def test_check_with_unreachable_source(self):
        source = unreachable_source()
        ctx = Context(source=source)
        try:
            result = await run_command(ctx.handler, "check", {})
        finally:
            await source.close()

        assert result["status"] == "error"
        assert result["operation"] == "check"
        assert "connection refused" in result["message"]
        assert ctx.sent_log.saves == []

    async def test_store_error_is_reported(self, ctx: Context):
        ctx.settings.should_fail_reads = True
        ctx.settings.read_error = sqlite3.OperationalError("database is locked")

        result = await run_command(ctx.handler, "excluded", {})

        assert result["status"] == "error"
        assert result["message"] == "database is locked"
