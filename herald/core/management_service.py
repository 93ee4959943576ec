"""Management service: implements ManagementPort for human-initiated operations.

This is a core service that exposes the user-facing settings operations
(destinations, exclusions, check delay, provider config, sent-log) plus
one-off sends and manual checks. Every state change is logged.
"""

import logging
from collections.abc import Awaitable, Callable

from .dispatch import NO_DESTINATION_ERROR, build_notify_args
from .models import (
    DEFAULT_CHECK_DELAY_MS,
    MIN_CHECK_DELAY_MS,
    CheckResult,
    NotifyConfig,
    SentFinding,
)
from .ports import (
    CheckPort,
    ManagementPort,
    NotifierPort,
    ProviderConfigFilePort,
    SentLogStorePort,
    SettingsStorePort,
)
from .provider_config import get_use_custom_provider_config, resolve_provider_config

logger = logging.getLogger(__name__)

DelayChangedCallback = Callable[[int], Awaitable[None]]


class ManagementService(ManagementPort):
    """Core implementation of ManagementPort.

    Coordinates settings persistence, the notifier and the check
    pipeline on behalf of the CLI.
    """

    def __init__(
        self,
        settings: SettingsStorePort,
        sent_log: SentLogStorePort,
        notifier: NotifierPort,
        provider_files: ProviderConfigFilePort,
        check: CheckPort,
        on_delay_changed: DelayChangedCallback | None = None,
        default_check_delay_ms: int = DEFAULT_CHECK_DELAY_MS,
    ):
        """Initialize the management service.

        Args:
            settings: SettingsStorePort for user configuration.
            sent_log: SentLogStorePort for the rolling sent-log.
            notifier: NotifierPort used for one-off sends.
            provider_files: ProviderConfigFilePort for provider config files.
            check: CheckPort run by manual checks.
            on_delay_changed: Awaited with the new delay after it is saved,
                typically the scheduler's start method.
            default_check_delay_ms: Delay reported when none is stored.
        """
        self.settings = settings
        self.sent_log = sent_log
        self.notifier = notifier
        self.provider_files = provider_files
        self.check = check
        self.on_delay_changed = on_delay_changed
        self.default_check_delay_ms = default_check_delay_ms

    async def get_notify_config(self) -> NotifyConfig:
        return await self.settings.get_notify_config() or NotifyConfig()

    async def save_notify_config(self, config: NotifyConfig) -> None:
        await self.settings.save_notify_config(config)
        logger.info(
            f"Saved notify destinations "
            f"({len(config.per_reporter)} per-reporter override(s))"
        )

    async def get_excluded(self) -> list[str]:
        return await self.settings.get_excluded() or []

    async def add_excluded(self, entry: str) -> None:
        """Exclude a finding ID or reporter name.

        Raises:
            ValueError: If entry is blank.
        """
        if not entry or not entry.strip():
            raise ValueError("Excluded entry must be a non-empty string")

        excluded = await self.get_excluded()
        if entry in excluded:
            return

        excluded.append(entry)
        await self.settings.save_excluded(excluded)
        logger.info(f"Excluded {entry!r}")

    async def remove_excluded(self, entry: str) -> None:
        excluded = await self.get_excluded()
        remaining = [e for e in excluded if e != entry]
        await self.settings.save_excluded(remaining)
        if len(remaining) != len(excluded):
            logger.info(f"Removed {entry!r} from exclusions")

    async def get_check_delay(self) -> int:
        delay = await self.settings.get_check_delay()
        return self.default_check_delay_ms if delay is None else delay

    async def save_check_delay(self, delay_ms: int) -> None:
        """Persist a new check delay and reschedule.

        Raises:
            ValueError: If delay_ms is below one second. Nothing is stored
                and the schedule is left alone.
        """
        if delay_ms < MIN_CHECK_DELAY_MS:
            raise ValueError(
                f"Delay must be at least {MIN_CHECK_DELAY_MS}ms (1 second)"
            )

        await self.settings.save_check_delay(delay_ms)
        logger.info(f"Check delay set to {delay_ms}ms")

        if self.on_delay_changed is not None:
            await self.on_delay_changed(delay_ms)

    async def get_sent_log(self) -> list[SentFinding]:
        return await self.sent_log.get_sent_log()

    async def clear_sent_log(self) -> None:
        await self.sent_log.clear_sent_log()
        logger.info("Cleared sent findings")

    async def get_provider_config(self) -> str:
        return await resolve_provider_config(self.settings, self.provider_files)

    async def save_provider_config(self, content: str) -> None:
        await self.settings.save_provider_config(content)
        logger.info("Saved provider config")

    async def get_use_custom_provider_config(self) -> bool:
        return await get_use_custom_provider_config(self.settings)

    async def save_use_custom_provider_config(self, use_custom: bool) -> None:
        await self.settings.save_use_custom_provider_config(use_custom)
        logger.info(f"Custom provider config {'enabled' if use_custom else 'disabled'}")

    async def send_notification(
        self, message: str, reporter: str | None = None
    ) -> None:
        """Send a single message through the notifier.

        Args:
            message: Text to send.
            reporter: Optional reporter name used to pick a per-reporter
                destination.

        Raises:
            ValueError: If no destination is configured.
            RuntimeError: If the notifier cannot be spawned or exits non-zero.
            OSError: If the provider config file cannot be written.
        """
        config = await self.get_notify_config()
        destination = config.resolve(reporter)
        if not destination.value:
            raise ValueError(NO_DESTINATION_ERROR)

        content = await resolve_provider_config(self.settings, self.provider_files)
        provider_config_path = await self.provider_files.write(content)

        args = build_notify_args(provider_config_path, destination)
        try:
            result = await self.notifier.invoke(args, message)
        except OSError as e:
            raise RuntimeError(f"Failed to execute notify: {e}") from e

        if not result.ok:
            raise RuntimeError(
                f"Notify command failed with code {result.returncode}: {result.stderr}"
            )

        logger.info(f"Sent notification to {destination.kind.value} {destination.value!r}")

    async def manual_check(self) -> CheckResult:
        """Run a check now without touching the schedule."""
        logger.info("Starting manual check")
        return await self.check.run_check()
