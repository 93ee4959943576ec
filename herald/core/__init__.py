"""Core domain logic for the Herald notification dispatcher.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    CheckResult,
    Destination,
    DestinationKind,
    DispatchOutcome,
    Finding,
    FindingsSentEvent,
    FilterResult,
    InvocationResult,
    NotifyConfig,
    SentFinding,
)

__all__ = [
    "CheckResult",
    "Destination",
    "DestinationKind",
    "DispatchOutcome",
    "Finding",
    "FindingsSentEvent",
    "FilterResult",
    "InvocationResult",
    "NotifyConfig",
    "SentFinding",
]
