"""Domain models for the Herald notification dispatcher.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType

# Sent-log entries and findings older than this are no longer relevant.
RELEVANCE_WINDOW_MS = 60 * 60 * 1000

MIN_CHECK_DELAY_MS = 1000
DEFAULT_CHECK_DELAY_MS = 60000


class DestinationKind(Enum):
    """How the notifier interprets a destination value.

    ID selects a notifier ID (``-id``), PROVIDER selects a whole
    provider (``-provider``).
    """

    ID = "id"
    PROVIDER = "provider"

    @property
    def flag(self) -> str:
        """Command-line flag passed to the notifier for this kind."""
        return "-provider" if self is DestinationKind.PROVIDER else "-id"


@dataclass(frozen=True)
class Destination:
    """A notifier target: a value and how to interpret it."""

    value: str
    kind: DestinationKind = DestinationKind.ID


@dataclass(frozen=True)
class NotifyConfig:
    """Default and per-reporter destinations.

    Per-reporter keys keep the casing the user entered; lookups are
    case-insensitive.
    """

    default_destination: str = ""
    default_kind: DestinationKind = DestinationKind.ID
    per_reporter: Mapping[str, Destination] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Convert the per-reporter mapping to a read-only proxy."""
        object.__setattr__(
            self, "per_reporter", MappingProxyType(dict(self.per_reporter))
        )

    @property
    def default(self) -> Destination:
        return Destination(value=self.default_destination, kind=self.default_kind)

    def override_for(self, reporter: str) -> Destination | None:
        """Return the per-reporter destination matching reporter, ignoring case."""
        wanted = reporter.lower()
        for key, destination in self.per_reporter.items():
            if key.lower() == wanted:
                return destination
        return None

    def resolve(self, reporter: str | None) -> Destination:
        """Return the override for reporter, or the default destination."""
        if reporter:
            override = self.override_for(reporter)
            if override is not None:
                return override
        return self.default


@dataclass(frozen=True)
class Finding:
    """A security finding fetched from the upstream source.

    timestamp is epoch milliseconds derived from created_at; the source
    adapter substitutes "now" when created_at is missing or unparseable.
    """

    id: str
    title: str
    reporter: str
    timestamp: int
    description: str = ""
    created_at: str | None = None

    def __post_init__(self) -> None:
        """Validate finding invariants on creation."""
        if not self.id:
            raise ValueError("finding id must be a non-empty string")


@dataclass(frozen=True)
class SentFinding:
    """A finding ID already handed to the notifier, with its timestamp in ms."""

    finding_id: str
    timestamp: int


@dataclass(frozen=True)
class FilterResult:
    """Output of the dedup and filter engine."""

    keep: tuple[Finding, ...]
    pruned_sent_log: tuple[SentFinding, ...]


@dataclass(frozen=True)
class InvocationResult:
    """Exit information for one notifier process run."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of notifying one reporter group.

    A timed-out invocation counts as a success: the process was left
    running and the cycle moved on.
    """

    reporter: str
    destination: Destination
    finding_count: int
    success: bool
    timed_out: bool = False
    spawned: bool = True
    error: str | None = None


@dataclass(frozen=True)
class FindingsSentEvent:
    """Emitted after a dispatch so observers can refresh."""

    count: int
    total_count: int


@dataclass(frozen=True)
class CheckResult:
    """Summary of one fetch, filter and dispatch run."""

    findings_fetched: int
    findings_sent: int
    total_sent_log: int
    timestamp: datetime
    outcomes: tuple[DispatchOutcome, ...] = ()

    @property
    def failed_groups(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)
