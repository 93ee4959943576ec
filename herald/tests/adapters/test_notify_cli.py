"""Integration tests for the notify CLI adapter.

A small Python script stands in for the notify binary so the real
subprocess plumbing is exercised.
"""

import sys

import pytest

from herald.adapters.notifier.notify_cli import NotifyCLIAdapter

ECHO_SCRIPT = """
import sys
data = sys.stdin.read()
sys.stdout.write(" ".join(sys.argv[1:]) + "|" + data)
"""

FAIL_SCRIPT = """
import sys
sys.stdin.read()
sys.stderr.write("provider not found")
sys.exit(3)
"""


@pytest.mark.asyncio
async def test_passes_args_and_stdin() -> None:
    adapter = NotifyCLIAdapter(command=[sys.executable, "-c", ECHO_SCRIPT])

    result = await adapter.invoke(["-id", "team", "-bulk"], "hello world")

    assert result.ok
    assert result.stdout == "-id team -bulk|hello world"


@pytest.mark.asyncio
async def test_nonzero_exit_reported() -> None:
    adapter = NotifyCLIAdapter(command=[sys.executable, "-c", FAIL_SCRIPT])

    result = await adapter.invoke(["-bulk"], "message")

    assert not result.ok
    assert result.returncode == 3
    assert result.stderr == "provider not found"


@pytest.mark.asyncio
async def test_missing_executable_raises_os_error() -> None:
    adapter = NotifyCLIAdapter(command="herald-no-such-notify-binary")

    with pytest.raises(OSError):
        await adapter.invoke(["-bulk"], "message")


def test_string_command_is_split() -> None:
    adapter = NotifyCLIAdapter(command="notify -silent")
    assert adapter.command == ["notify", "-silent"]


def test_empty_command_rejected() -> None:
    with pytest.raises(ValueError):
        NotifyCLIAdapter(command="  ")


@pytest.mark.asyncio
async def test_unencodable_text_is_replaced() -> None:
    adapter = NotifyCLIAdapter(command=[sys.executable, "-c", ECHO_SCRIPT])

    result = await adapter.invoke(["-bulk"], "bad \ud83d title")

    assert result.ok
    assert result.stdout == "-bulk|bad ? title"
