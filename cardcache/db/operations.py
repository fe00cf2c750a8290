"""
Card store operations.

CardStore wraps an AsyncSession with the handful of reads and writes the
reconciler needs. Errors are SQLAlchemy's own; the reconciler classifies them.
"""

from collections.abc import Collection, Sequence
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cardcache.models.card import CanonicalCard
from cardcache.models.db import (
    CardDB,
    CardTypeLinkDB,
    CardTypeNameDB,
    card_to_row,
    row_to_card,
)


class Store(Protocol):
    """Persistence operations used by the reconciler."""

    async def fetch_key_page(self, offset: int, limit: int) -> list[str]: ...

    async def get_cards(self, keys: Sequence[str]) -> list[CanonicalCard]: ...

    async def insert_card(self, card: CanonicalCard) -> None: ...

    async def update_card(self, card: CanonicalCard) -> None: ...

    async def ensure_type(self, type_filtered: str, type_name: str) -> bool: ...

    async def replace_card_types(self, oracle_id: str, type_filtered: Collection[str]) -> bool: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class CardStore:
    """SQLAlchemy-backed Store."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def fetch_key_page(self, offset: int, limit: int) -> list[str]:
        """Get one page of primary keys, ordered by key."""
        result = await self.session.execute(
            select(CardDB.oracle_id).order_by(CardDB.oracle_id).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def get_cards(self, keys: Sequence[str]) -> list[CanonicalCard]:
        """Get stored cards for the given keys. Unknown keys are ignored."""
        if not keys:
            return []
        result = await self.session.execute(select(CardDB).where(CardDB.oracle_id.in_(keys)))
        return [row_to_card(row) for row in result.scalars().all()]

    async def insert_card(self, card: CanonicalCard) -> None:
        """
        Insert a new card row.

        Raises IntegrityError if the key already exists.
        """
        self.session.add(CardDB(**card_to_row(card)))
        await self.session.flush()

    async def update_card(self, card: CanonicalCard) -> None:
        """
        Overwrite every column of an existing card row.

        Raises LookupError if the card is not stored.
        """
        existing = await self.session.get(CardDB, card.oracle_id)
        if existing is None:
            raise LookupError(f"Card {card.oracle_id} not found")

        for key, value in card_to_row(card).items():
            setattr(existing, key, value)
        await self.session.flush()

    async def ensure_type(self, type_filtered: str, type_name: str) -> bool:
        """
        Insert a type token if it is not stored yet.

        Returns True if a row was created.
        """
        if await self.session.get(CardTypeNameDB, type_filtered) is not None:
            return False
        self.session.add(CardTypeNameDB(type_filtered=type_filtered, type=type_name))
        await self.session.flush()
        return True

    async def replace_card_types(self, oracle_id: str, type_filtered: Collection[str]) -> bool:
        """
        Set a card's type links to exactly the given tokens.

        Links to other tokens are deleted. Returns True if any link changed.
        """
        result = await self.session.execute(
            select(CardTypeLinkDB.type_filtered).where(CardTypeLinkDB.oracle_id == oracle_id)
        )
        current = set(result.scalars().all())
        wanted = set(type_filtered)

        stale = current - wanted
        if stale:
            await self.session.execute(
                delete(CardTypeLinkDB).where(
                    CardTypeLinkDB.oracle_id == oracle_id,
                    CardTypeLinkDB.type_filtered.in_(sorted(stale)),
                )
            )
        missing = wanted - current
        for token in sorted(missing):
            self.session.add(CardTypeLinkDB(oracle_id=oracle_id, type_filtered=token))
        await self.session.flush()
        return bool(stale or missing)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
