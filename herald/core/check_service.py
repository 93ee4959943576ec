"""Check cycle logic for the notification dispatcher.

This module implements the pipeline run that fetches findings, filters
out the ones that are stale, excluded or already sent, records the
survivors in the sent-log and fans them out to the notifier.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from .dedup import filter_findings
from .dispatch import Dispatcher, ensure_destinations, group_by_reporter
from .models import CheckResult, FindingsSentEvent, NotifyConfig, SentFinding
from .ports import (
    CheckPort,
    EventSinkPort,
    FindingSourcePort,
    ProviderConfigFilePort,
    SentLogStorePort,
    SettingsStorePort,
)
from .provider_config import resolve_provider_config

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CheckService(CheckPort):
    """Implements the check cycle.

    This service orchestrates:
    - Fetching findings from the source
    - Pruning the sent-log and filtering findings
    - Recording selected findings before dispatch
    - Fanning out to the notifier and announcing the result

    Runs are serialized: a manual trigger arriving during a scheduled
    run waits for it to finish.
    """

    def __init__(
        self,
        source: FindingSourcePort,
        settings: SettingsStorePort,
        sent_log: SentLogStorePort,
        dispatcher: Dispatcher,
        provider_files: ProviderConfigFilePort,
        events: EventSinkPort,
        clock: Callable[[], int] = now_ms,
    ):
        self.source = source
        self.settings = settings
        self.sent_log = sent_log
        self.dispatcher = dispatcher
        self.provider_files = provider_files
        self.events = events
        self.clock = clock
        self._run_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        """True while a run is in progress."""
        return self._run_lock.locked()

    async def run_check(self) -> CheckResult:
        """Fetch, filter and dispatch findings. Returns a summary."""
        async with self._run_lock:
            return await self._run()

    async def _run(self) -> CheckResult:
        excluded = await self.settings.get_excluded() or []
        sent_log = await self.sent_log.get_sent_log()

        findings = await self.source.get_findings()

        now = self.clock()
        result = filter_findings(findings, excluded, sent_log, now)

        if len(result.pruned_sent_log) != len(sent_log):
            logger.debug(
                f"Pruned {len(sent_log) - len(result.pruned_sent_log)} expired sent-log entries"
            )
            await self.sent_log.save_sent_log(result.pruned_sent_log)

        if not result.keep:
            return CheckResult(
                findings_fetched=len(findings),
                findings_sent=0,
                total_sent_log=len(result.pruned_sent_log),
                timestamp=datetime.now(timezone.utc),
            )

        # Recorded before dispatch so a failed or hung send is never repeated
        updated_log = list(result.pruned_sent_log) + [
            SentFinding(finding_id=f.id, timestamp=f.timestamp) for f in result.keep
        ]
        await self.sent_log.save_sent_log(updated_log)

        config = await self.settings.get_notify_config() or NotifyConfig()
        ensure_destinations(group_by_reporter(result.keep), config)

        content = await resolve_provider_config(self.settings, self.provider_files)
        provider_config_path = await self.provider_files.write(content)

        outcomes = await self.dispatcher.dispatch(
            result.keep, config, provider_config_path
        )

        await self.events.emit_findings_sent(
            FindingsSentEvent(count=len(result.keep), total_count=len(updated_log))
        )

        return CheckResult(
            findings_fetched=len(findings),
            findings_sent=len(result.keep),
            total_sent_log=len(updated_log),
            timestamp=datetime.now(timezone.utc),
            outcomes=tuple(outcomes),
        )
