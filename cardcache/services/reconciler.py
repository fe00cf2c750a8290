"""
Persistence differ and writer.

Loads the keys already in the store, inserts cards that are missing and
updates stored cards whose fields changed. Every write is keyed by the
card's stable identifier, so re-running a cycle after a crash converges to
the same state.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from cardcache.db.operations import Store
from cardcache.models.card import CanonicalCard
from cardcache.models.failure import StoreReadError, StoreWriteError
from cardcache.services.derived_fields import normalize_name

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

# Driver connection failures (e.g. asyncpg refusing a connection) arrive as OSError
STORE_ERRORS = (SQLAlchemyError, OSError)

# Every stored attribute except the key
COMPARED_FIELDS = (
    "name",
    "search_uri",
    "color",
    "color_identity",
    "types",
    "cmc",
    "mana_cost",
    "oracle_text",
    "filtered_name",
)


@dataclass
class ReconcileResult:
    """Write counts for one reconciliation."""

    inserted: int = 0
    updated: int = 0


class UpdatePolicy(Protocol):
    """Decides whether a stored card should be overwritten by the incoming one."""

    def needs_update(self, stored: CanonicalCard, incoming: CanonicalCard) -> bool: ...


@dataclass(frozen=True)
class FieldMismatchPolicy:
    """Update when any compared field differs."""

    fields: tuple[str, ...] = COMPARED_FIELDS

    def needs_update(self, stored: CanonicalCard, incoming: CanonicalCard) -> bool:
        return any(getattr(stored, f) != getattr(incoming, f) for f in self.fields)


class NeverUpdatePolicy:
    """Insert-only: stored cards are left untouched."""

    def needs_update(self, stored: CanonicalCard, incoming: CanonicalCard) -> bool:
        return False


def update_policy_for(name: str) -> UpdatePolicy:
    """Look up an update policy by its configuration name."""
    if name == "on_change":
        return FieldMismatchPolicy()
    if name == "never":
        return NeverUpdatePolicy()
    raise ValueError(f"Unknown update policy: {name}")


async def load_existing_keys(store: Store, page_size: int = DEFAULT_PAGE_SIZE) -> frozenset[str]:
    """
    Collect every primary key in the store.

    Pages through the key column until a page comes back shorter than
    page_size.

    Raises:
        StoreReadError: If any page cannot be read
    """
    keys: set[str] = set()
    offset = 0
    while True:
        try:
            page = await store.fetch_key_page(offset, page_size)
        except STORE_ERRORS as e:
            raise StoreReadError(f"Could not read card keys at offset {offset}", e) from e

        keys.update(page)
        if len(page) < page_size:
            break
        offset += page_size

    logger.info("Found %d cards in the store", len(keys))
    return frozenset(keys)


class _BatchWriter:
    """Runs writes and commits every `batch_size` of them."""

    def __init__(self, store: Store, batch_size: int) -> None:
        self.store = store
        self.batch_size = batch_size
        self.pending = 0
        self.known_types: set[str] = set()

    async def write(
        self, operation: Callable[[CanonicalCard], Awaitable[None]], card: CanonicalCard
    ) -> None:
        try:
            await operation(card)
        except (*STORE_ERRORS, LookupError) as e:
            await self._rollback()
            raise StoreWriteError(f"Could not write {card.name}", e, oracle_id=card.oracle_id) from e

        await self._count_write()

    async def write_types(self, card: CanonicalCard) -> None:
        """Make the card's type links match card.types exactly."""
        tokens: dict[str, str] = {}
        for type_name in card.types:
            type_filtered = normalize_name(type_name)
            if type_filtered:
                tokens.setdefault(type_filtered, type_name)

        try:
            changed = False
            for type_filtered, type_name in tokens.items():
                if type_filtered not in self.known_types:
                    changed |= await self.store.ensure_type(type_filtered, type_name)
                    self.known_types.add(type_filtered)
            changed |= await self.store.replace_card_types(card.oracle_id, tokens.keys())
        except STORE_ERRORS as e:
            await self._rollback()
            raise StoreWriteError(
                f"Could not write types for {card.name}", e, oracle_id=card.oracle_id
            ) from e

        if changed:
            await self._count_write()

    async def _count_write(self) -> None:
        self.pending += 1
        if self.pending >= self.batch_size:
            await self.commit()

    async def commit(self) -> None:
        if not self.pending:
            return
        try:
            await self.store.commit()
        except STORE_ERRORS as e:
            await self._rollback()
            raise StoreWriteError("Could not commit card batch", e) from e
        self.pending = 0

    async def _rollback(self) -> None:
        try:
            await self.store.rollback()
        except STORE_ERRORS as e:
            logger.warning("Rollback failed: %s", e)


async def reconcile(
    store: Store,
    cards: Sequence[CanonicalCard],
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    update_policy: UpdatePolicy | None = None,
    write_card_types: bool = False,
) -> ReconcileResult:
    """
    Insert new cards and update changed ones.

    Args:
        store: Card store
        cards: Canonical cards from this cycle
        page_size: Page size for key scans, stored-row lookups and commits
        update_policy: Decides updates for cards already stored.
            Defaults to FieldMismatchPolicy.
        write_card_types: Also maintain the types and card_types tables.
            Every card in the sequence gets links matching its types,
            whether or not its row changed.

    Returns:
        Insert and update counts

    Raises:
        StoreReadError: If existing rows cannot be read
        StoreWriteError: If any write fails. The cycle stops at that card.
    """
    policy = update_policy if update_policy is not None else FieldMismatchPolicy()
    logger.info("Syncing card database")

    existing = await load_existing_keys(store, page_size)

    new_cards: list[CanonicalCard] = []
    present_cards: list[CanonicalCard] = []
    seen: set[str] = set()
    for card in cards:
        if card.oracle_id in seen:
            logger.warning("Skipping duplicate key %s (%s)", card.oracle_id, card.name)
            continue
        seen.add(card.oracle_id)
        if card.oracle_id in existing:
            present_cards.append(card)
        else:
            new_cards.append(card)

    logger.info("Performing updates")
    result = ReconcileResult()
    writer = _BatchWriter(store, page_size)

    for card in new_cards:
        logger.debug("Inserting %s", card.name)
        await writer.write(store.insert_card, card)
        if write_card_types:
            await writer.write_types(card)
        result.inserted += 1

    for start in range(0, len(present_cards), page_size):
        batch = present_cards[start : start + page_size]
        try:
            stored = {
                c.oracle_id: c for c in await store.get_cards([c.oracle_id for c in batch])
            }
        except STORE_ERRORS as e:
            raise StoreReadError("Could not read stored cards for comparison", e) from e

        for card in batch:
            previous = stored.get(card.oracle_id)
            if previous is None:
                # Removed since the key scan
                logger.debug("Inserting %s", card.name)
                await writer.write(store.insert_card, card)
                result.inserted += 1
            elif policy.needs_update(previous, card):
                logger.debug("Updating %s", card.name)
                await writer.write(store.update_card, card)
                result.updated += 1
            if write_card_types:
                await writer.write_types(card)

    await writer.commit()

    logger.info("Inserted %d cards, Updated %d cards", result.inserted, result.updated)
    return result
