"""Provider config resolution.

The notifier's provider config always comes from the settings store.
When the store is empty and the user has opted for the notifier's own
default file, that file is imported into the store once.
"""

import logging

from .ports import ProviderConfigFilePort, SettingsStorePort

logger = logging.getLogger(__name__)


async def get_use_custom_provider_config(settings: SettingsStorePort) -> bool:
    """Return the custom provider config flag, defaulting to True."""
    use_custom = await settings.get_use_custom_provider_config()
    return True if use_custom is None else use_custom


async def resolve_provider_config(
    settings: SettingsStorePort, files: ProviderConfigFilePort
) -> str:
    """Return the provider config document to hand to the notifier.

    Falls back to the notifier's default file when nothing is stored and
    custom config is disabled. The fallback result, including an empty
    document for a missing file, is persisted so later runs skip the
    file system.
    """
    stored = await settings.get_provider_config()
    if stored:
        return stored

    if await get_use_custom_provider_config(settings):
        return ""

    content = await files.read_default()
    if content is None:
        logger.info("No default provider config found, storing empty config")
        content = ""
    else:
        logger.info("Imported default provider config into settings")

    await settings.save_provider_config(content)
    return content
