"""
Face filter and deduplicator.

Reduces the many printings and faces in the bulk document to one canonical
card per exact name.
"""

import logging
from collections.abc import Iterator, Mapping
from enum import Enum

from cardcache.models.card import CanonicalCard, RawCardEntry, SetGroup
from cardcache.services.derived_fields import build_search_uri, flatten_colors, normalize_name

logger = logging.getLogger(__name__)


class MergeStrategy(str, Enum):
    """How entries sharing a name are merged."""

    # First accepted-face entry wins; alternate faces are skipped.
    FIRST_WRITE_WINS = "first_write_wins"
    # As above, but a name with no accepted-face entry falls back to its
    # first alternate-face entry once the scan is complete.
    FACE_FALLBACK = "face_fallback"


def iter_entries(sets: Mapping[str, SetGroup]) -> Iterator[RawCardEntry]:
    """Flatten all set groups into one stream, in mapping order."""
    total = len(sets)
    for index, (code, group) in enumerate(sets.items()):
        logger.debug("Processing %s - %d/%d", code, index + 1, total)
        yield from group.cards


def to_canonical(
    entry: RawCardEntry,
    color_separator: str = "",
    canonical_color_order: bool = False,
) -> CanonicalCard:
    """Copy an entry's fields and compute its derived ones."""
    return CanonicalCard(
        oracle_id=entry.oracle_id,
        name=entry.name,
        search_uri=build_search_uri(entry.name),
        color=flatten_colors(entry.colors, color_separator, canonical_color_order),
        color_identity=flatten_colors(
            entry.color_identity, color_separator, canonical_color_order
        ),
        types=tuple(entry.types),
        cmc=entry.cmc,
        mana_cost=entry.mana_cost,
        oracle_text=entry.text,
        filtered_name=normalize_name(entry.name),
    )


def select_entries(
    entries: Iterator[RawCardEntry],
    strategy: MergeStrategy = MergeStrategy.FIRST_WRITE_WINS,
) -> dict[str, RawCardEntry]:
    """
    Pick the surviving entry for each name.

    Names are compared exactly (case and accent sensitive). The first
    accepted-face entry for a name wins and is never replaced.

    Returns:
        Dict mapping name to its winning entry, in order of first acceptance
    """
    winners: dict[str, RawCardEntry] = {}
    # (name, face) -> first entry seen with that alternate face
    fallback: dict[tuple[str, str], RawCardEntry] = {}

    for entry in entries:
        if entry.name in winners:
            continue
        if entry.is_accepted_face:
            winners[entry.name] = entry
        elif strategy is MergeStrategy.FACE_FALLBACK:
            fallback.setdefault((entry.name, entry.face), entry)

    for (name, _face), entry in fallback.items():
        if name not in winners:
            winners[name] = entry

    return winners


def deduplicate(
    sets: Mapping[str, SetGroup],
    *,
    strategy: MergeStrategy = MergeStrategy.FIRST_WRITE_WINS,
    color_separator: str = "",
    canonical_color_order: bool = False,
) -> list[CanonicalCard]:
    """
    Merge identical cards into one canonical record per name.

    Args:
        sets: Parsed set groups
        strategy: Merge strategy for entries sharing a name
        color_separator: Passed through to flatten_colors
        canonical_color_order: Passed through to flatten_colors

    Returns:
        One CanonicalCard per distinct accepted name
    """
    winners = select_entries(iter_entries(sets), strategy)
    cards = [
        to_canonical(entry, color_separator, canonical_color_order) for entry in winners.values()
    ]
    logger.info("Merged %d sets into %d unique cards", len(sets), len(cards))
    return cards
