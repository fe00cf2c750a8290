from cardcache.db.database import (
    check_connection,
    create_engine_from_settings,
    create_session_factory,
    drop_db,
    init_db,
)
from cardcache.db.operations import CardStore, Store

__all__ = [
    "CardStore",
    "Store",
    "check_connection",
    "create_engine_from_settings",
    "create_session_factory",
    "drop_db",
    "init_db",
]
