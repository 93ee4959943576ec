"""Fake NotifierPort implementation for testing."""

import asyncio
from collections.abc import Sequence

from herald.core.models import InvocationResult
from herald.core.ports import NotifierPort


class FakeNotifier(NotifierPort):
    """In-memory notifier for testing.

    Captures every invocation. Behavior can be configured per destination
    value (the argument following -id/-provider): a result to return, an
    OSError to raise, any other exception to raise, or a hang that never
    finishes on its own.
    """

    def __init__(self):
        self.invocations: list[tuple[list[str], str]] = []
        self.results: dict[str, InvocationResult] = {}
        self.spawn_errors: set[str] = set()
        self.invoke_errors: dict[str, Exception] = {}
        self.hanging: set[str] = set()
        self.release = asyncio.Event()

    @staticmethod
    def destination_of(args: Sequence[str]) -> str:
        for flag in ("-id", "-provider"):
            if flag in args:
                return args[list(args).index(flag) + 1]
        return ""

    async def invoke(self, args: Sequence[str], stdin: str) -> InvocationResult:
        self.invocations.append((list(args), stdin))
        destination = self.destination_of(args)

        if destination in self.spawn_errors:
            raise FileNotFoundError(2, "No such file or directory", "notify")

        if destination in self.invoke_errors:
            raise self.invoke_errors[destination]

        if destination in self.hanging:
            await self.release.wait()

        return self.results.get(destination, InvocationResult(returncode=0))

    def fail(self, destination: str, returncode: int = 1, stderr: str = "bad config") -> None:
        """Make invocations for destination exit with an error."""
        self.results[destination] = InvocationResult(returncode=returncode, stderr=stderr)

    def messages(self) -> list[str]:
        return [stdin for _, stdin in self.invocations]

    def destinations(self) -> list[str]:
        return [self.destination_of(args) for args, _ in self.invocations]
