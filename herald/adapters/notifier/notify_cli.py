"""ProjectDiscovery notify CLI adapter.

Implements NotifierPort by running the ``notify`` binary as a child
process, writing the message to its standard input and waiting for it
to exit.

Invocation format: notify -provider-config <path> {-id|-provider} <value> -bulk
"""

import asyncio
import logging
import shlex
from collections.abc import Sequence

from herald.core.models import InvocationResult
from herald.core.ports import NotifierPort

logger = logging.getLogger(__name__)


class NotifyCLIAdapter(NotifierPort):
    """Runs the notify command line tool."""

    def __init__(self, command: str | Sequence[str] = "notify"):
        """Initialize the notify CLI adapter.

        Args:
            command: Executable to run, either a shell-style string
                (split with shlex) or an argument list. Extra arguments
                are appended after it.
        """
        if isinstance(command, str):
            command = shlex.split(command)
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)

    async def invoke(self, args: Sequence[str], stdin: str) -> InvocationResult:
        """Run notify with args and stdin; return its exit information.

        Raises:
            OSError: If the executable cannot be started.
        """
        argv = [*self.command, *args]
        logger.debug(f"Running {shlex.join(argv)}")

        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate(
            stdin.encode("utf-8", errors="replace")
        )

        result = InvocationResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if not result.ok:
            logger.debug(f"notify exited with code {result.returncode}")
        return result
