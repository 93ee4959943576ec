"""Composition root for the Herald notification dispatcher.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (daemon, CLI, single check)
"""

import asyncio
import json
import logging
import sys
from dataclasses import dataclass

from herald.adapters.cli.commands import CLICommandHandler, run_command
from herald.adapters.events.sinks import LoggingEventSink, StdoutEventSink
from herald.adapters.notifier.notify_cli import NotifyCLIAdapter
from herald.adapters.notifier.provider_files import ProviderConfigFiles
from herald.adapters.scheduler.interval import IntervalScheduler
from herald.adapters.source.graphql import GraphQLFindingSource
from herald.adapters.store.sqlite import SQLiteStore
from herald.config import Settings, load_settings
from herald.core.check_service import CheckService
from herald.core.dispatch import Dispatcher
from herald.core.management_service import ManagementService
from herald.core.ports import EventSinkPort


@dataclass
class Application:
    """Wired components for one process."""

    settings: Settings
    source: GraphQLFindingSource
    store: SQLiteStore
    check_service: CheckService
    management: ManagementService
    scheduler: IntervalScheduler

    async def close(self) -> None:
        """Release adapter resources."""
        await self.source.close()
        await self.store.close_pool()


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for management commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(None, input, "herald> ")

            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            if not isinstance(args, dict):
                logger.error("Arguments must be a JSON object. Use 'help' for command syntax.")
                continue

            try:
                result = await run_command(cli_handler, command, args)
                print(json.dumps(result, indent=2, default=str))
            except ValueError as e:
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            # Ctrl+D to exit
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue
        except Exception as e:
            logger.error(f"CLI error: {e}", exc_info=True)


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  config
    Show default and per-reporter destinations.

  set-config
    Replace destinations.
    Example: set-config {"default": "slack", "default_kind": "id",
                         "per_reporter": {"SQL Injection": {"destination": "discord", "kind": "provider"}}}

  excluded
    Show excluded finding IDs and reporter names.

  exclude / include
    Add or remove an exclusion (finding ID or reporter name).
    Example: exclude {"entry": "Enhanced File Detector"}

  delay / set-delay
    Show or change the check delay in milliseconds (minimum 1000).
    Example: set-delay {"delay_ms": 30000}

  sent / clear-sent
    Show or clear the findings already sent in the last hour.

  provider / set-provider
    Show or replace the notify provider config (YAML).
    Example: set-provider {"content": "slack:\\n  - id: team"}

  use-custom
    Use the stored provider config (true) or import notify's default (false).
    Example: use-custom {"enabled": false}

  send
    Send a one-off message.
    Example: send {"message": "hello", "reporter": "SQL Injection"}

  check
    Check for new findings now.

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def _build_event_sink(settings: Settings) -> EventSinkPort:
    if settings.event_sink == "stdout":
        return StdoutEventSink()
    return LoggingEventSink()


def build_application(settings: Settings) -> Application:
    """Instantiate adapters and core services and wire them together."""
    logger = logging.getLogger(__name__)
    logger.info("Initializing adapters...")

    source = GraphQLFindingSource(
        api_url=settings.graphql_url,
        api_token=settings.graphql_token,
        timeout=settings.graphql_timeout_seconds,
    )
    store = SQLiteStore(db_path=settings.store_sqlite_path)
    notifier = NotifyCLIAdapter(command=settings.notify_command)
    provider_files = ProviderConfigFiles(
        config_dir=settings.config_dir,
        default_config_path=settings.default_provider_config_path,
    )
    events = _build_event_sink(settings)
    logger.info(f"Settings store: {settings.store_sqlite_path}")

    logger.info("Initializing core services...")
    dispatcher = Dispatcher(
        notifier=notifier,
        timeout_seconds=settings.dispatch_timeout_seconds,
    )
    check_service = CheckService(
        source=source,
        settings=store,
        sent_log=store,
        dispatcher=dispatcher,
        provider_files=provider_files,
        events=events,
    )
    scheduler = IntervalScheduler(check_port=check_service)
    management = ManagementService(
        settings=store,
        sent_log=store,
        notifier=notifier,
        provider_files=provider_files,
        check=check_service,
        on_delay_changed=scheduler.start,
        default_check_delay_ms=settings.initial_check_delay_ms,
    )

    return Application(
        settings=settings,
        source=source,
        store=store,
        check_service=check_service,
        management=management,
        scheduler=scheduler,
    )


async def bootstrap() -> None:
    """Load configuration, wire adapters, and start the application.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate adapters and core services
    4. Select and start run mode

    Raises:
        SystemExit: On fatal errors (configuration, adapter initialization)
    """
    settings = load_settings()

    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading Herald notification dispatcher...")

    app = build_application(settings)

    logger.info(f"Starting in {settings.run_mode} mode...")
    try:
        await app.store.initialize()

        if settings.run_mode == "daemon":
            delay_ms = await app.management.get_check_delay()
            await app.scheduler.start(delay_ms)
            await app.scheduler.run_until_stopped()

        elif settings.run_mode == "cli":
            # Scheduled checks keep running while the user manages settings
            delay_ms = await app.management.get_check_delay()
            await app.scheduler.start(delay_ms)
            try:
                await _run_cli_interactive(CLICommandHandler(app.management))
            finally:
                await app.scheduler.shutdown()

        elif settings.run_mode == "check":
            await app.scheduler.trigger()

        else:
            logger.error(f"Unknown run mode: {settings.run_mode}")
            sys.exit(1)

    finally:
        await app.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
