"""
SQLAlchemy ORM models for the card store.

Column names follow the existing `cards` schema; attribute names follow the
CanonicalCard dataclass.
"""

from typing import Any

from sqlalchemy import JSON, Float, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cardcache.models.card import CanonicalCard


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    One canonical card per row, keyed by its stable external identifier.
    """

    __tablename__ = "cards"

    oracle_id: Mapped[str] = mapped_column("cardid", String(64), primary_key=True)
    search_uri: Mapped[str] = mapped_column("scryfall_uri", Text, default="")
    name: Mapped[str] = mapped_column("card_name", String(255), index=True)
    color: Mapped[str] = mapped_column(String(32), default="")
    color_identity: Mapped[str] = mapped_column(String(32), default="")
    types: Mapped[list[str]] = mapped_column("type", JSON, default=list)
    cmc: Mapped[float] = mapped_column(Float, default=0.0)
    mana_cost: Mapped[str] = mapped_column(String(128), default="")
    oracle_text: Mapped[str] = mapped_column(Text, default="")
    filtered_name: Mapped[str] = mapped_column(String(255), index=True, default="")

    def __repr__(self) -> str:
        return f"<CardDB(oracle_id={self.oracle_id}, name={self.name})>"


class CardTypeNameDB(Base):
    """Normalized type token mapped to its display form (e.g. "creature" -> "Creature")."""

    __tablename__ = "types"

    type_filtered: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(64))

    def __repr__(self) -> str:
        return f"<CardTypeNameDB(type_filtered={self.type_filtered})>"


class CardTypeLinkDB(Base):
    """Join row between a card and one of its normalized types."""

    __tablename__ = "card_types"

    oracle_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("cards.cardid", ondelete="CASCADE"), primary_key=True
    )
    type_filtered: Mapped[str] = mapped_column(
        String(64), ForeignKey("types.type_filtered", ondelete="CASCADE"), primary_key=True
    )

    def __repr__(self) -> str:
        return f"<CardTypeLinkDB(oracle_id={self.oracle_id}, type={self.type_filtered})>"


def card_to_row(card: CanonicalCard) -> dict[str, Any]:
    """
    Column values for a card, in the positional order of the insert statement.

    Order: key, name, search URI, color, color identity, type, cmc,
    mana cost, oracle text, normalized name.
    """
    return {
        "oracle_id": card.oracle_id,
        "name": card.name,
        "search_uri": card.search_uri,
        "color": card.color,
        "color_identity": card.color_identity,
        "types": list(card.types),
        "cmc": card.cmc,
        "mana_cost": card.mana_cost,
        "oracle_text": card.oracle_text,
        "filtered_name": card.filtered_name,
    }


def row_to_card(row: CardDB) -> CanonicalCard:
    """Convert a stored row back to a domain model."""
    return CanonicalCard(
        oracle_id=row.oracle_id,
        name=row.name,
        search_uri=row.search_uri or "",
        color=row.color or "",
        color_identity=row.color_identity or "",
        types=tuple(row.types or ()),
        cmc=float(row.cmc or 0.0),
        mana_cost=row.mana_cost or "",
        oracle_text=row.oracle_text or "",
        filtered_name=row.filtered_name or "",
    )
