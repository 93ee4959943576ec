"""Fake port implementations for testing."""

from .check import FakeCheckPort
from .events import FakeEventSink
from .notifier import FakeNotifier
from .provider_files import FakeProviderConfigFiles
from .source import FakeFindingSource
from .store import FakeSentLogStore, FakeSettingsStore

__all__ = [
    "FakeCheckPort",
    "FakeEventSink",
    "FakeFindingSource",
    "FakeNotifier",
    "FakeProviderConfigFiles",
    "FakeSentLogStore",
    "FakeSettingsStore",
]
