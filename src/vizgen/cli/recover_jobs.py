"""CLI command for failing generation jobs stuck in processing.

A job stays processing forever if the process that owned its dispatch task
died mid-poll. The API runs this recovery on startup; this command does the
same on demand.

Usage:
    python -m vizgen.cli.recover_jobs [OPTIONS]

Examples:
    # Fail jobs older than the polling ceiling plus grace period
    python -m vizgen.cli.recover_jobs

    # Fail jobs still processing after 30 minutes
    python -m vizgen.cli.recover_jobs --older-than-minutes 30

    # Verbose logging
    python -m vizgen.cli.recover_jobs -v
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from datetime import timedelta

import structlog

from vizgen.core import timezone  # noqa: F401
from vizgen.core.config import Settings, configure_logging
from vizgen.core.database import setup_db_session
from vizgen.core.timezone import utc_now
from vizgen.uow import create_uow_factory
from vizgen.workers.generation_worker import INTERRUPTED_MESSAGE, recover_orphaned_jobs

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(
        description="Fail generation jobs left in processing by a dead worker",
    )

    parser.add_argument(
        "--older-than-minutes",
        type=float,
        help="Age threshold in minutes (default: polling ceiling plus grace period)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


async def async_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (error)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)

    logger.info("cli.started", older_than_minutes=args.older_than_minutes)

    try:
        if args.older_than_minutes is None:
            recovered = await recover_orphaned_jobs(uow_factory, settings)
        else:
            cutoff = utc_now() - timedelta(minutes=args.older_than_minutes)
            async with await uow_factory() as uow:
                recovered = await uow.jobs.fail_stale_processing(cutoff, INTERRUPTED_MESSAGE)

        print(f"Jobs marked failed: {recovered}")
        logger.info("cli.success", recovered=recovered)
        return 0

    except KeyboardInterrupt:
        logger.info("cli.interrupted")
        print("\nRecovery interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT

    except Exception as e:
        logger.error(
            "cli.unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        return 1

    finally:
        await session_factory.kw["bind"].dispose()


def main() -> None:
    """Synchronous entry point for CLI."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
