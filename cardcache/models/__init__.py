from cardcache.models.card import (
    ACCEPTED_FACE,
    ALTERNATE_FACES,
    FLIP,
    MDFC,
    TRANSFORM,
    CanonicalCard,
    RawCardEntry,
    SetGroup,
)
from cardcache.models.failure import (
    ConfigError,
    MalformedDocumentError,
    StoreReadError,
    StoreWriteError,
    SyncError,
    SyncStage,
    TransientFetchError,
)

__all__ = [
    "ACCEPTED_FACE",
    "ALTERNATE_FACES",
    "CanonicalCard",
    "ConfigError",
    "FLIP",
    "MDFC",
    "MalformedDocumentError",
    "RawCardEntry",
    "SetGroup",
    "StoreReadError",
    "StoreWriteError",
    "SyncError",
    "SyncStage",
    "TRANSFORM",
    "TransientFetchError",
]
