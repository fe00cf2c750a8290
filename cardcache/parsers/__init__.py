from cardcache.parsers.mtgjson import (
    FLAT_GROUP,
    DocumentShape,
    detect_shape,
    parse_document,
    parse_flat,
    parse_sets,
)

__all__ = [
    "DocumentShape",
    "FLAT_GROUP",
    "detect_shape",
    "parse_document",
    "parse_flat",
    "parse_sets",
]
