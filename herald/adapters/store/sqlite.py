"""SQLite settings and sent-log store adapter.

Implements SettingsStorePort and SentLogStorePort on a single key/value
table using aiosqlite for async access. Values are JSON documents,
except the provider config which is stored verbatim.
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from herald.core.models import Destination, DestinationKind, NotifyConfig, SentFinding
from herald.core.ports import SentLogStorePort, SettingsStorePort

logger = logging.getLogger(__name__)

KEY_NOTIFY_IDS = "notify-ids"
KEY_EXCLUDED = "excluded-findings"
KEY_SENT = "sent-findings"
KEY_CHECK_DELAY = "check-delay"
KEY_USE_CUSTOM_PROVIDER = "use-custom-provider-config"
KEY_PROVIDER_CONFIG = "custom-provider-config"


class SQLiteStore(SettingsStorePort, SentLogStorePort):
    """SQLite-backed key/value store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 2):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def initialize(self) -> None:
        """Create the config table if needed. Safe to call repeatedly."""
        if self._schema_initialized:
            return

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS config (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            await conn.commit()
            self._schema_initialized = True
        finally:
            await self._return_connection(conn)

    async def _get_raw(self, key: str) -> str | None:
        await self.initialize()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute("SELECT value FROM config WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return None if row is None else row[0]
        finally:
            await self._return_connection(conn)

    async def _set_raw(self, key: str, value: str) -> None:
        await self.initialize()

        conn = await self._get_connection()
        try:
            await conn.execute(
                "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                (key, value),
            )
            await conn.commit()
        finally:
            await self._return_connection(conn)

    async def _get_json(self, key: str) -> Any:
        """Read and decode a JSON value.

        Raises:
            ValueError: If the stored value is not valid JSON.
        """
        raw = await self._get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Stored value for {key!r} is not valid JSON: {e}") from e

    async def _set_json(self, key: str, value: Any) -> None:
        await self._set_raw(key, json.dumps(value))

    # -- SettingsStorePort ---------------------------------------------------

    async def get_notify_config(self) -> NotifyConfig | None:
        data = await self._get_json(KEY_NOTIFY_IDS)
        if data is None:
            return None
        return self._deserialize_notify_config(data)

    async def save_notify_config(self, config: NotifyConfig) -> None:
        await self._set_json(KEY_NOTIFY_IDS, self._serialize_notify_config(config))

    async def get_excluded(self) -> list[str] | None:
        data = await self._get_json(KEY_EXCLUDED)
        if data is None:
            return None
        if not isinstance(data, list):
            raise ValueError(f"Excluded findings must be a list, got {type(data).__name__}")
        return [str(entry) for entry in data]

    async def save_excluded(self, excluded: Sequence[str]) -> None:
        await self._set_json(KEY_EXCLUDED, list(excluded))

    async def get_check_delay(self) -> int | None:
        data = await self._get_json(KEY_CHECK_DELAY)
        return None if data is None else int(data)

    async def save_check_delay(self, delay_ms: int) -> None:
        await self._set_json(KEY_CHECK_DELAY, delay_ms)

    async def get_provider_config(self) -> str | None:
        return await self._get_raw(KEY_PROVIDER_CONFIG)

    async def save_provider_config(self, content: str) -> None:
        await self._set_raw(KEY_PROVIDER_CONFIG, content)

    async def get_use_custom_provider_config(self) -> bool | None:
        data = await self._get_json(KEY_USE_CUSTOM_PROVIDER)
        return None if data is None else bool(data)

    async def save_use_custom_provider_config(self, use_custom: bool) -> None:
        await self._set_json(KEY_USE_CUSTOM_PROVIDER, use_custom)

    # -- SentLogStorePort ----------------------------------------------------

    async def get_sent_log(self) -> list[SentFinding]:
        data = await self._get_json(KEY_SENT)
        if not data:
            return []
        if not isinstance(data, list):
            raise ValueError(f"Sent findings must be a list, got {type(data).__name__}")

        entries = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning(f"Skipping malformed sent-log entry: {item!r}")
                continue
            finding_id = item.get("findingId")
            if finding_id is None:
                logger.warning(f"Skipping sent-log entry without findingId: {item}")
                continue
            try:
                timestamp = int(item.get("timestamp", 0))
            except (TypeError, ValueError):
                logger.warning(f"Skipping sent-log entry with invalid timestamp: {item}")
                continue
            entries.append(SentFinding(finding_id=str(finding_id), timestamp=timestamp))
        return entries

    async def save_sent_log(self, entries: Sequence[SentFinding]) -> None:
        await self._set_json(
            KEY_SENT,
            [{"findingId": e.finding_id, "timestamp": e.timestamp} for e in entries],
        )

    async def clear_sent_log(self) -> None:
        await self._set_json(KEY_SENT, [])

    # -- Serialization -------------------------------------------------------

    @staticmethod
    def _serialize_notify_config(config: NotifyConfig) -> dict[str, Any]:
        """Encode destinations in the plugin's stored document shape."""
        return {
            "defaultIds": config.default_destination,
            "defaultIdsType": config.default_kind.value,
            "customFindingIds": {
                reporter: dest.value for reporter, dest in config.per_reporter.items()
            },
            "customFindingIdsType": {
                reporter: dest.kind.value for reporter, dest in config.per_reporter.items()
            },
        }

    @staticmethod
    def _deserialize_notify_config(data: dict[str, Any]) -> NotifyConfig:
        """Decode a stored destinations document.

        Missing per-reporter kinds inherit the default kind.

        Raises:
            ValueError: If a kind is not "id" or "provider".
        """
        default_kind = DestinationKind(data.get("defaultIdsType") or "id")
        kinds = data.get("customFindingIdsType") or {}
        per_reporter = {
            reporter: Destination(
                value=value,
                kind=DestinationKind(kinds[reporter]) if reporter in kinds else default_kind,
            )
            for reporter, value in (data.get("customFindingIds") or {}).items()
        }
        return NotifyConfig(
            default_destination=data.get("defaultIds") or "",
            default_kind=default_kind,
            per_reporter=per_reporter,
        )
