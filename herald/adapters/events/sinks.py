"""Event sink adapters.

Implement EventSinkPort for observers of dispatch activity: a logging
sink for daemon use and a stdout sink that prints one JSON line per
event for consumption by other processes.
"""

import asyncio
import json
import logging

from herald.core.models import FindingsSentEvent
from herald.core.ports import EventSinkPort

logger = logging.getLogger(__name__)

FINDINGS_SENT = "findings-sent"


class LoggingEventSink(EventSinkPort):
    """Writes events to the application log."""

    async def emit_findings_sent(self, event: FindingsSentEvent) -> None:
        logger.info(
            f"{FINDINGS_SENT}: {event.count} new finding(s), "
            f"{event.total_count} in sent-log"
        )


class StdoutEventSink(EventSinkPort):
    """Prints events to stdout as JSON lines."""

    async def emit_findings_sent(self, event: FindingsSentEvent) -> None:
        line = json.dumps(
            {
                "event": FINDINGS_SENT,
                "count": event.count,
                "totalCount": event.total_count,
            }
        )
        await asyncio.to_thread(print, line, flush=True)
