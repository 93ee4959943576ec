"""Port interfaces for the Herald notification dispatcher.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - FindingSourcePort: Fetch current findings
   - SettingsStorePort: Persist user configuration
   - SentLogStorePort: Persist the rolling sent-log
   - NotifierPort: Run the external notifier process
   - ProviderConfigFilePort: Materialize provider config on disk
   - EventSinkPort: Tell observers that findings were sent

2. **Driving Ports** (adapters/external systems call into core)
   - CheckPort: Entry point for fetch, filter and dispatch runs
   - ManagementPort: Human-initiated settings operations
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .models import (
    CheckResult,
    FindingsSentEvent,
    Finding,
    InvocationResult,
    NotifyConfig,
    SentFinding,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class FindingSourcePort(ABC):
    """Port for fetching findings from the security testing tool.

    Adapters normalize the upstream representation into Finding objects,
    including deriving the epoch-millisecond timestamp from createdAt.
    """

    @abstractmethod
    async def get_findings(self) -> list[Finding]:
        """Return all current findings in source order.

        Raises:
            Exception: If the source is unreachable or reports errors.
                The caller aborts the run without mutating state.
        """


class SettingsStorePort(ABC):
    """Port for user-configured settings.

    Each getter returns None when the value has never been stored so
    callers can apply their own defaults.

    Implementations raise on read or write failure; there is no retry.
    """

    @abstractmethod
    async def get_notify_config(self) -> NotifyConfig | None:
        """Return the stored destinations, or None if never saved."""

    @abstractmethod
    async def save_notify_config(self, config: NotifyConfig) -> None:
        """Replace the stored destinations."""

    @abstractmethod
    async def get_excluded(self) -> list[str] | None:
        """Return the exclusion list in insertion order."""

    @abstractmethod
    async def save_excluded(self, excluded: Sequence[str]) -> None:
        """Replace the exclusion list."""

    @abstractmethod
    async def get_check_delay(self) -> int | None:
        """Return the check delay in milliseconds."""

    @abstractmethod
    async def save_check_delay(self, delay_ms: int) -> None:
        """Store the check delay in milliseconds."""

    @abstractmethod
    async def get_provider_config(self) -> str | None:
        """Return the stored provider config document."""

    @abstractmethod
    async def save_provider_config(self, content: str) -> None:
        """Store the provider config document verbatim."""

    @abstractmethod
    async def get_use_custom_provider_config(self) -> bool | None:
        """Return whether the stored provider config is user-supplied."""

    @abstractmethod
    async def save_use_custom_provider_config(self, use_custom: bool) -> None:
        """Store the custom-vs-default provider config flag."""


class SentLogStorePort(ABC):
    """Port for the rolling log of findings already dispatched.

    The store is the single source of truth; the core keeps no copy
    between runs.
    """

    @abstractmethod
    async def get_sent_log(self) -> list[SentFinding]:
        """Return the persisted sent-log (empty if never saved)."""

    @abstractmethod
    async def save_sent_log(self, entries: Sequence[SentFinding]) -> None:
        """Replace the persisted sent-log."""

    @abstractmethod
    async def clear_sent_log(self) -> None:
        """Empty the persisted sent-log."""


class NotifierPort(ABC):
    """Port for running the external notifier command.

    One reusable primitive for every invocation: the coroutine suspends
    until the process exits.
    """

    @abstractmethod
    async def invoke(self, args: Sequence[str], stdin: str) -> InvocationResult:
        """Run the notifier with args, feeding stdin, and wait for exit.

        Returns:
            InvocationResult with exit code and captured output. A non-zero
            exit is returned, not raised.

        Raises:
            OSError: If the process cannot be spawned.
        """


class ProviderConfigFilePort(ABC):
    """Port for provider config files the notifier reads from disk."""

    @abstractmethod
    async def write(self, content: str) -> str:
        """Write content to the notifier's provider config path.

        Returns:
            The path written, suitable for -provider-config.

        Raises:
            OSError: If the directory or file cannot be written.
        """

    @abstractmethod
    async def read_default(self) -> str | None:
        """Read the notifier's own default provider config.

        Returns:
            File content, or None if the file does not exist.
        """


class EventSinkPort(ABC):
    """Port for announcing dispatch activity to external observers."""

    @abstractmethod
    async def emit_findings_sent(self, event: FindingsSentEvent) -> None:
        """Publish a findings-sent event."""


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class CheckPort(ABC):
    """Port for executing fetch, filter and dispatch runs.

    Driving port: the interval scheduler and the manual trigger invoke
    this to run the pipeline.
    """

    @abstractmethod
    async def run_check(self) -> CheckResult:
        """Execute one complete fetch → filter → dispatch run.

        Raises:
            Exception: On source, configuration or persistence failure.
                Per-reporter dispatch failures are reported in the result.
        """


class ManagementPort(ABC):
    """Port for human-initiated settings operations.

    Driving port: the CLI invokes these methods. Implementations live
    in the core.
    """

    @abstractmethod
    async def get_notify_config(self) -> NotifyConfig:
        """Return destinations, empty if never configured."""

    @abstractmethod
    async def save_notify_config(self, config: NotifyConfig) -> None:
        """Replace destinations."""

    @abstractmethod
    async def get_excluded(self) -> list[str]:
        """Return the exclusion list."""

    @abstractmethod
    async def add_excluded(self, entry: str) -> None:
        """Exclude a finding ID or reporter name; no-op if present."""

    @abstractmethod
    async def remove_excluded(self, entry: str) -> None:
        """Stop excluding an entry; no-op if absent."""

    @abstractmethod
    async def get_check_delay(self) -> int:
        """Return the check delay in milliseconds."""

    @abstractmethod
    async def save_check_delay(self, delay_ms: int) -> None:
        """Persist a new delay and reschedule.

        Raises:
            ValueError: If delay_ms is below the one second minimum.
        """

    @abstractmethod
    async def get_sent_log(self) -> list[SentFinding]:
        """Return the sent-log."""

    @abstractmethod
    async def clear_sent_log(self) -> None:
        """Forget all sent findings."""

    @abstractmethod
    async def get_provider_config(self) -> str:
        """Return the provider config document, falling back to defaults."""

    @abstractmethod
    async def save_provider_config(self, content: str) -> None:
        """Replace the provider config document."""

    @abstractmethod
    async def get_use_custom_provider_config(self) -> bool:
        """Return whether a custom provider config is in use."""

    @abstractmethod
    async def save_use_custom_provider_config(self, use_custom: bool) -> None:
        """Toggle between custom and notifier-default provider config."""

    @abstractmethod
    async def send_notification(
        self, message: str, reporter: str | None = None
    ) -> None:
        """Send one message to the destination resolved for reporter.

        Raises:
            ValueError: If no destination is configured.
            RuntimeError: If the notifier exits with an error.
        """

    @abstractmethod
    async def manual_check(self) -> CheckResult:
        """Run the check pipeline now, outside the schedule."""
