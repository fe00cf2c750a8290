"""
Card cache sync daemon.

Downloads the bulk card document, merges identical cards and syncs them to
the database every 12 hours. Each cycle makes up to `max_attempts` attempts;
the next cycle starts on schedule whether or not the previous one succeeded.

Run with `python -m cardcache.jobs.sync_cards` or `cardcache-sync`.
"""

import argparse
import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from cardcache.config import Settings, load_settings
from cardcache.db.database import (
    check_connection,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from cardcache.db.operations import CardStore
from cardcache.models.failure import ConfigError, SyncError
from cardcache.parsers.mtgjson import parse_document
from cardcache.services.deduplicator import MergeStrategy, deduplicate
from cardcache.services.fetcher import create_client, fetch_document
from cardcache.services.reconciler import ReconcileResult, reconcile, update_policy_for
from cardcache.services.scheduling import Clock, SystemClock, wait_for

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Outcome of one scheduled cycle."""

    succeeded: bool
    attempts: int
    started_at: float
    inserted: int = 0
    updated: int = 0
    errors: list[Exception] = field(default_factory=list)


async def sync_once(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    client: httpx.AsyncClient,
) -> ReconcileResult:
    """
    Run the fetch, parse, dedupe and reconcile pipeline once.

    Raises:
        SyncError: If any stage fails
    """
    logger.info("Updating the card cache...")
    body = await fetch_document(settings.source_url, client)

    logger.info("Parsing cards...")
    sets = parse_document(body, settings.document_shape)
    logger.info("Found %d sets", len(sets))

    logger.info("Merging identical cards...")
    cards = deduplicate(
        sets,
        strategy=MergeStrategy(settings.face_merge),
        color_separator=settings.color_separator,
        canonical_color_order=settings.canonical_color_order,
    )

    logger.info("Inserting / updating %d cards", len(cards))
    async with session_factory() as session:
        return await reconcile(
            CardStore(session),
            cards,
            page_size=settings.key_page_size,
            update_policy=update_policy_for(settings.update_policy),
            write_card_types=settings.write_card_types,
        )


async def run_cycle(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    client: httpx.AsyncClient,
    *,
    clock: Clock | None = None,
    wait: wait_base | None = None,
) -> CycleResult:
    """
    Attempt a sync up to `settings.max_attempts` times.

    The first successful attempt ends the cycle. Failed attempts are logged
    and never propagate.

    Args:
        settings: Daemon settings
        session_factory: Session factory for the shared engine
        client: HTTP client for the bulk document
        clock: Time source. Defaults to SystemClock.
        wait: Delay between failed attempts. Defaults to the configured strategy.

    Returns:
        CycleResult with attempt count, write counts and collected errors
    """
    clock = clock or SystemClock()
    if wait is None:
        wait = wait_for(settings.backoff, settings.backoff_delay, settings.backoff_max_delay)

    async def sleep(seconds: float) -> None:
        if seconds > 0:
            await clock.sleep(seconds)

    max_attempts = settings.max_attempts
    result = CycleResult(succeeded=False, attempts=0, started_at=clock.now())
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait,
        sleep=sleep,
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_backoff,
    )

    try:
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                result.attempts = number
                if number > 1:
                    logger.info("Trying to fetch cards again %d/%d", number, max_attempts)
                else:
                    logger.info("Trying to fetch the card cache...")

                try:
                    counts = await sync_once(settings, session_factory, client)
                except SyncError as e:
                    logger.error(
                        "Attempt %d/%d failed at stage %s: %s",
                        number,
                        max_attempts,
                        e.stage.value,
                        e,
                    )
                    result.errors.append(e)
                    raise
                except Exception as e:
                    logger.exception(
                        "Attempt %d/%d failed unexpectedly: %s", number, max_attempts, e
                    )
                    result.errors.append(e)
                    raise
    except RetryError:
        logger.error("Failed to fetch cards after %d attempts", max_attempts)
        return result

    result.succeeded = True
    result.inserted = counts.inserted
    result.updated = counts.updated
    logger.info("Update successful.")
    return result


def _log_backoff(retry_state: RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    if delay > 0:
        logger.info("Retrying in %.1fs", delay)


async def run_forever(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    client: httpx.AsyncClient,
    *,
    clock: Clock | None = None,
    wait: wait_base | None = None,
    max_cycles: int | None = None,
) -> list[CycleResult]:
    """
    Run a cycle immediately, then one every `settings.wait_interval` seconds.

    The interval is measured from the start of each cycle. Sleeps in
    `settings.poll_interval` steps. Runs forever unless max_cycles is given.

    Returns:
        Results of the cycles run (only reached when max_cycles is set)
    """
    clock = clock or SystemClock()
    results: list[CycleResult] = []

    while True:
        result = await run_cycle(settings, session_factory, client, clock=clock, wait=wait)
        results.append(result)
        if max_cycles is not None and len(results) >= max_cycles:
            return results

        logger.info("Waiting for the next update.")
        while clock.now() - result.started_at < settings.wait_interval:
            await clock.sleep(settings.poll_interval)


async def run_daemon(settings: Settings, *, once: bool = False, create_tables: bool = False) -> int:
    """
    Connect to the database and run the scheduler.

    Returns:
        Process exit code
    """
    engine = create_engine_from_settings(settings)
    try:
        try:
            await check_connection(engine)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Cannot connect to the database: %s", e)
            return 1

        if create_tables:
            await init_db(engine)

        logger.info("Connection successful, starting daemon.")
        session_factory = create_session_factory(engine)

        async with create_client(settings.fetch_timeout) as client:
            if once:
                result = await run_cycle(settings, session_factory, client)
                return 0 if result.succeeded else 1
            await run_forever(settings, session_factory, client)
            return 0
    finally:
        await engine.dispose()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the local card cache with the bulk catalog")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit (non-zero if every attempt failed)",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before syncing",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        raise SystemExit(1) from e

    logger.info("Loading %s card cache daemon, source %s", settings.app_name, settings.source_url)
    raise SystemExit(asyncio.run(run_daemon(settings, once=args.once, create_tables=args.init_db)))


if __name__ == "__main__":
    main()
