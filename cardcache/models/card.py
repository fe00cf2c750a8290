"""
Card models for a sync cycle.

INVARIANTS:
- RawCardEntry and SetGroup are UNTRUSTED, transient parsing artifacts
- CanonicalCard is the unit of persistence, one per distinct card name
- All models are immutable after construction
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Face designator of the single representative eligible for deduplication
ACCEPTED_FACE = ""

# Known alternate-face tags. Entries carrying these are never accepted directly.
MDFC = "modal_dfc"
FLIP = "flip"
TRANSFORM = "transform"
ALTERNATE_FACES = frozenset({MDFC, FLIP, TRANSFORM})


class RawCardEntry(BaseModel):
    """
    One printing or face as it appears in the bulk document.

    Field aliases cover both the set-grouped AllPrintings schema and the
    flat card array schema.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    oracle_id: str = Field(validation_alias=AliasChoices("uuid", "oracleId", "oracle_id"))
    name: str
    text: str = ""
    layout: str = ""
    colors: list[str] = Field(default_factory=list)
    color_identity: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("colorIdentity", "color_identity"),
    )
    types: list[str] = Field(default_factory=list)
    cmc: float = Field(
        default=0.0,
        validation_alias=AliasChoices("convertedManaCost", "manaValue", "cmc"),
    )
    mana_cost: str = Field(default="", validation_alias=AliasChoices("manaCost", "mana_cost"))
    face: str = ACCEPTED_FACE

    @field_validator("text", "layout", "mana_cost", "face", mode="before")
    @classmethod
    def _none_to_empty_str(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("colors", "color_identity", "types", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_accepted_face(self) -> bool:
        return self.face == ACCEPTED_FACE


@dataclass(frozen=True, slots=True)
class SetGroup:
    """
    A named collection of raw entries, one per published set.

    Discarded once the deduplicator has flattened it.
    """

    code: str
    cards: list[RawCardEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CanonicalCard:
    """
    Deduplicated, enriched card record.

    Attributes:
        oracle_id: Stable external identifier, primary key in the store
        name: Display name exactly as published
        search_uri: Scryfall search URL anchored on the exact name
        color: Flattened color list
        color_identity: Flattened color identity list
        types: Card types (e.g. ("Creature",))
        cmc: Converted mana cost
        mana_cost: Mana cost string (e.g. "{1}{R}")
        oracle_text: Rules text
        filtered_name: Lowercase ASCII lookup key derived from the name
    """

    oracle_id: str
    name: str
    search_uri: str
    color: str
    color_identity: str
    types: tuple[str, ...]
    cmc: float
    mana_cost: str
    oracle_text: str
    filtered_name: str
