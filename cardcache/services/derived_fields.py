"""
Derived card fields.

Pure functions computing the lookup key, search URI and flattened color
strings stored alongside each canonical card.
"""

from collections.abc import Iterable
from urllib.parse import quote_plus

SCRYFALL_SEARCH_TEMPLATE = (
    "https://scryfall.com/search?q=name%3D%2F%5E{name}%24%2F&unique=cards&as=grid&order=name"
)

# Characters outside a-z/A-Z that still map to a letter in the lookup key
_SPECIAL_LETTERS = {"û": "u"}

# WUBRG, the conventional color order
_COLOR_ORDER = {"W": 0, "U": 1, "B": 2, "R": 3, "G": 4}


def normalize_name(name: str) -> str:
    """
    Reduce a card name to a lowercase ASCII lookup key.

    Uppercase ASCII letters are lower-cased, lowercase ASCII letters are kept,
    "û" becomes "u" and everything else (digits, punctuation, whitespace,
    other non-ASCII) is dropped. Lossy: distinct names may share a key.

    Example: "Lim-Dûl's Paladin" -> "limdulspaladin"
    """
    chars: list[str] = []
    for c in name:
        if "A" <= c <= "Z":
            chars.append(chr(ord(c) + 32))
        elif "a" <= c <= "z":
            chars.append(c)
        elif c in _SPECIAL_LETTERS:
            chars.append(_SPECIAL_LETTERS[c])
    return "".join(chars)


def build_search_uri(name: str) -> str:
    """Scryfall search URL matching exactly this name, one result per card."""
    return SCRYFALL_SEARCH_TEMPLATE.format(name=quote_plus(name))


def flatten_colors(
    colors: Iterable[str],
    separator: str = "",
    canonical_order: bool = False,
) -> str:
    """
    Summarize a color list as a single string.

    Args:
        colors: Color symbols (W, U, B, R, G)
        separator: Inserted between symbols. Empty by default, which gives
            plain concatenation in input order.
        canonical_order: Sort into WUBRG order first; unknown symbols go last
            in input order

    Returns:
        e.g. ["U", "R"] -> "UR"
    """
    items = list(colors)
    if canonical_order:
        items.sort(key=lambda c: _COLOR_ORDER.get(c, len(_COLOR_ORDER)))
    return separator.join(items)
