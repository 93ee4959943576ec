"""Provider config file adapter.

notify only accepts its provider configuration as a file path, so the
stored document is written to Herald's own config directory before each
send. The notifier's default provider config can also be read from its
usual location so it can be imported into settings.
"""

import asyncio
import logging
from pathlib import Path

from herald.core.ports import ProviderConfigFilePort

logger = logging.getLogger(__name__)

PROVIDER_CONFIG_FILENAME = "provider-config.yaml"


class ProviderConfigFiles(ProviderConfigFilePort):
    """Reads and writes provider config YAML files on the local disk."""

    def __init__(self, config_dir: str, default_config_path: str):
        """Initialize the provider config file adapter.

        Args:
            config_dir: Directory holding the file passed to notify.
                Created on first write. ``~`` is expanded.
            default_config_path: Location of notify's own provider config.
        """
        self.config_dir = Path(config_dir).expanduser()
        self.default_config_path = Path(default_config_path).expanduser()

    @property
    def provider_config_path(self) -> Path:
        return self.config_dir / PROVIDER_CONFIG_FILENAME

    async def write(self, content: str) -> str:
        """Write content to the provider config file and return its path."""
        path = self.provider_config_path

        def _write() -> None:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"Failed to write provider config to {path}: {e}")
            raise

        return str(path)

    async def read_default(self) -> str | None:
        """Return notify's default provider config, or None if absent."""
        try:
            return await asyncio.to_thread(
                self.default_config_path.read_text, encoding="utf-8"
            )
        except FileNotFoundError:
            logger.debug(f"No default provider config at {self.default_config_path}")
            return None
