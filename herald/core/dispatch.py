"""Dispatch fan-out.

Groups findings by reporter, resolves each group's destination and
invokes the notifier once per group with a batched message. Groups are
sent concurrently; a watchdog stops a hung notifier from stalling the
whole cycle.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence

from .models import Destination, DispatchOutcome, Finding, InvocationResult, NotifyConfig
from .ports import NotifierPort

logger = logging.getLogger(__name__)

MESSAGE_SEPARATOR = "\n\n---\n\n"
NO_DESTINATION_ERROR = "No notify IDs configured"


def group_by_reporter(findings: Iterable[Finding]) -> dict[str, list[Finding]]:
    """Group findings by exact reporter name, keeping first-seen order."""
    groups: dict[str, list[Finding]] = {}
    for finding in findings:
        groups.setdefault(finding.reporter, []).append(finding)
    return groups


def format_finding(finding: Finding) -> str:
    """Render one finding as notification text."""
    return (
        f"🔔 New Finding: {finding.title}\n\n"
        f"Reporter: {finding.reporter}\n\n"
        f"{finding.description}\n\n"
        f"Finding ID: {finding.id}"
    )


def build_batch_message(findings: Iterable[Finding]) -> str:
    """Join formatted findings into one bulk message."""
    return MESSAGE_SEPARATOR.join(format_finding(f) for f in findings)


def build_notify_args(provider_config_path: str, destination: Destination) -> list[str]:
    """Build notifier arguments for a bulk send to destination."""
    return [
        "-provider-config",
        provider_config_path,
        destination.kind.flag,
        destination.value,
        "-bulk",
    ]


def ensure_destinations(reporters: Iterable[str], config: NotifyConfig) -> None:
    """Fail if any reporter would fall back to an empty default destination.

    Raises:
        ValueError: If the default destination is empty and a reporter
            has no override.
    """
    if config.default_destination:
        return
    for reporter in reporters:
        override = config.override_for(reporter)
        if override is None or not override.value:
            raise ValueError(NO_DESTINATION_ERROR)


class Dispatcher:
    """Sends batched findings to the notifier, one invocation per reporter."""

    def __init__(self, notifier: NotifierPort, timeout_seconds: float = 30.0):
        """Initialize the dispatcher.

        Args:
            notifier: NotifierPort used to run the notifier process.
            timeout_seconds: Watchdog after which a running invocation is
                treated as done.
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        findings: Sequence[Finding],
        config: NotifyConfig,
        provider_config_path: str,
    ) -> list[DispatchOutcome]:
        """Notify every reporter group and wait for all to settle.

        Returns:
            One DispatchOutcome per reporter group, in group order.

        Raises:
            ValueError: If a group has no usable destination. Checked
                before any invocation starts.
            RuntimeError: If the notifier could not be spawned for some
                group. Raised only after every group has settled.
        """
        groups = group_by_reporter(findings)
        if not groups:
            return []

        ensure_destinations(groups, config)

        outcomes = await asyncio.gather(
            *(
                self._send_group(
                    reporter,
                    config.resolve(reporter),
                    group,
                    provider_config_path,
                )
                for reporter, group in groups.items()
            )
        )

        spawn_failures = [o for o in outcomes if not o.spawned]
        if spawn_failures:
            raise RuntimeError(spawn_failures[0].error)

        return list(outcomes)

    async def _send_group(
        self,
        reporter: str,
        destination: Destination,
        findings: list[Finding],
        provider_config_path: str,
    ) -> DispatchOutcome:
        """Invoke the notifier for one reporter group under the watchdog."""
        args = build_notify_args(provider_config_path, destination)
        message = build_batch_message(findings)

        invocation = asyncio.ensure_future(self.notifier.invoke(args, message))
        done, _ = await asyncio.wait({invocation}, timeout=self.timeout_seconds)

        if not done:
            logger.warning(
                f'Notify command for reporter "{reporter}" still running after '
                f"{self.timeout_seconds:g}s, continuing without it"
            )
            invocation.add_done_callback(self._late_result_logger(reporter))
            return DispatchOutcome(
                reporter=reporter,
                destination=destination,
                finding_count=len(findings),
                success=True,
                timed_out=True,
            )

        try:
            result = invocation.result()
        except OSError as e:
            logger.error(f'Notify process error for reporter "{reporter}": {e}')
            return DispatchOutcome(
                reporter=reporter,
                destination=destination,
                finding_count=len(findings),
                success=False,
                spawned=False,
                error=f"Failed to execute notify: {e}",
            )
        except Exception as e:
            logger.error(
                f'Notify invocation error for reporter "{reporter}": {e}', exc_info=True
            )
            return DispatchOutcome(
                reporter=reporter,
                destination=destination,
                finding_count=len(findings),
                success=False,
                error=f"Notify invocation failed: {e}",
            )

        if not result.ok:
            logger.error(
                f'Notify command failed for reporter "{reporter}" '
                f"with code {result.returncode}: {result.stderr}"
            )
            return DispatchOutcome(
                reporter=reporter,
                destination=destination,
                finding_count=len(findings),
                success=False,
                error=f"Notify command failed with code {result.returncode}: {result.stderr}",
            )

        logger.debug(f'Sent {len(findings)} finding(s) for reporter "{reporter}"')
        return DispatchOutcome(
            reporter=reporter,
            destination=destination,
            finding_count=len(findings),
            success=True,
        )

    @staticmethod
    def _late_result_logger(reporter: str):
        """Build a callback that reports how a timed-out invocation ended."""

        def _log(task: "asyncio.Future[InvocationResult]") -> None:
            if task.cancelled():
                return
            error = task.exception()
            if error is not None:
                logger.error(f'Late notify error for reporter "{reporter}": {error}')
            elif not task.result().ok:
                logger.error(
                    f'Late notify failure for reporter "{reporter}" '
                    f"with code {task.result().returncode}: {task.result().stderr}"
                )
            else:
                logger.info(f'Late notify for reporter "{reporter}" completed')

        return _log
