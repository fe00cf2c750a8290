"""
Bulk catalog document parser.

Two published shapes are supported:

    sets:  {"data": {"<SET>": {"cards": [<card>, ...]}, ...}}   (AllPrintings)
    flat:  [<card>, ...]  or  {"data": [<card>, ...]}

Parsing is all-or-nothing: any structural problem raises
MalformedDocumentError and the cycle aborts.
"""

import json
from typing import Any, Literal

from pydantic import ValidationError

from cardcache.models.card import RawCardEntry, SetGroup
from cardcache.models.failure import MalformedDocumentError

DocumentShape = Literal["auto", "sets", "flat"]

# Set code under which a flat card array is grouped
FLAT_GROUP = "*"


def detect_shape(document: Any) -> Literal["sets", "flat"]:
    """
    Detect which published shape a decoded document uses.

    Raises:
        MalformedDocumentError: If neither shape matches
    """
    if isinstance(document, list):
        return "flat"
    if isinstance(document, dict):
        data = document.get("data")
        if isinstance(data, dict):
            return "sets"
        if isinstance(data, list):
            return "flat"
    raise MalformedDocumentError("Unrecognized document shape: expected a card array or 'data'")


def _parse_cards(cards: Any, set_code: str) -> list[RawCardEntry]:
    if not isinstance(cards, list):
        raise MalformedDocumentError(f"Set {set_code}: 'cards' is not a list")

    entries: list[RawCardEntry] = []
    for index, card in enumerate(cards):
        try:
            entries.append(RawCardEntry.model_validate(card))
        except ValidationError as e:
            raise MalformedDocumentError(f"Set {set_code}: invalid card at index {index}", e) from e
    return entries


def parse_sets(document: Any) -> dict[str, SetGroup]:
    """Parse the set-grouped shape."""
    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise MalformedDocumentError("Expected a top-level 'data' mapping of sets")

    groups: dict[str, SetGroup] = {}
    for code, set_data in document["data"].items():
        if not isinstance(set_data, dict):
            raise MalformedDocumentError(f"Set {code}: expected an object")
        if "cards" not in set_data:
            raise MalformedDocumentError(f"Set {code}: missing 'cards'")
        groups[code] = SetGroup(code=code, cards=_parse_cards(set_data["cards"], code))
    return groups


def parse_flat(document: Any) -> dict[str, SetGroup]:
    """Parse the flat card array shape into a single group."""
    if isinstance(document, dict):
        document = document.get("data")
    if not isinstance(document, list):
        raise MalformedDocumentError("Expected a top-level array of cards")

    cards = _parse_cards(document, FLAT_GROUP)
    if not cards:
        return {}
    return {FLAT_GROUP: SetGroup(code=FLAT_GROUP, cards=cards)}


def parse_document(body: bytes, shape: DocumentShape = "auto") -> dict[str, SetGroup]:
    """
    Decode the bulk document into per-set card lists.

    Args:
        body: Raw response body
        shape: Expected document shape, or "auto" to detect it

    Returns:
        Dict mapping set code to its SetGroup. Empty if the document has no sets.

    Raises:
        MalformedDocumentError: If the body is not JSON or does not match the shape
    """
    try:
        document = json.loads(body)
    except ValueError as e:
        raise MalformedDocumentError("Bulk document is not valid JSON", e) from e

    if shape == "auto":
        shape = detect_shape(document)

    if shape == "sets":
        return parse_sets(document)
    return parse_flat(document)
