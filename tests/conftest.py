from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cardcache.config import Settings
from cardcache.db.database import drop_db, init_db
from cardcache.models.card import CanonicalCard

SOURCE_URL = "https://mtgjson.example.com/api/v5/AllPrintings.json"


def make_card(oracle_id: str = "id-1", name: str = "Lightning Bolt", **overrides: Any) -> CanonicalCard:
    """Build a canonical card with sensible defaults."""
    values: dict[str, Any] = {
        "oracle_id": oracle_id,
        "name": name,
        "search_uri": f"https://scryfall.com/search?q={name}",
        "color": "R",
        "color_identity": "R",
        "types": ("Instant",),
        "cmc": 1.0,
        "mana_cost": "{R}",
        "oracle_text": "Lightning Bolt deals 3 damage to any target.",
        "filtered_name": "lightningbolt",
    }
    values.update(overrides)
    return CanonicalCard(**values)


@pytest.fixture
def card_factory() -> Callable[..., CanonicalCard]:
    return make_card


@pytest.fixture
def settings() -> Settings:
    """Settings that never touch the environment or a real database."""
    return Settings(
        _env_file=None,
        db_name="cards",
        db_username="cardcache",
        db_password="secret",
        db_host="localhost",
        source_url=SOURCE_URL,
        wait_interval=10.0,
        poll_interval=1.0,
    )


@pytest.fixture
def all_printings() -> dict[str, Any]:
    """A small AllPrintings document with duplicate printings and faces."""
    return {
        "meta": {"date": "2026-10-01", "version": "5.2.2"},
        "data": {
            "LEA": {
                "name": "Limited Edition Alpha",
                "cards": [
                    {
                        "uuid": "uuid-bolt-lea",
                        "name": "Lightning Bolt",
                        "text": "Lightning Bolt deals 3 damage to any target.",
                        "layout": "normal",
                        "colors": ["R"],
                        "colorIdentity": ["R"],
                        "types": ["Instant"],
                        "convertedManaCost": 1.0,
                        "manaCost": "{R}",
                    },
                    {
                        "uuid": "uuid-counterspell-lea",
                        "name": "Counterspell",
                        "text": "Counter target spell.",
                        "layout": "normal",
                        "colors": ["U"],
                        "colorIdentity": ["U"],
                        "types": ["Instant"],
                        "convertedManaCost": 2.0,
                        "manaCost": "{U}{U}",
                    },
                ],
            },
            "ICE": {
                "name": "Ice Age",
                "cards": [
                    {
                        "uuid": "uuid-paladin",
                        "name": "Lim-Dûl's Paladin",
                        "text": "Trample",
                        "layout": "normal",
                        "colors": ["B", "R"],
                        "colorIdentity": ["B", "R"],
                        "types": ["Creature"],
                        "convertedManaCost": 4.0,
                        "manaCost": "{2}{B}{R}",
                    },
                    {
                        "uuid": "uuid-bolt-m10",
                        "name": "Lightning Bolt",
                        "text": "Lightning Bolt deals 3 damage to any target.",
                        "layout": "normal",
                        "colors": ["R"],
                        "colorIdentity": ["R"],
                        "types": ["Instant"],
                        "convertedManaCost": 1.0,
                        "manaCost": "{R}",
                    },
                ],
            },
            "APC": {
                "name": "Apocalypse",
                "cards": [
                    {
                        "uuid": "uuid-fire-ice",
                        "name": "Fire // Ice",
                        "text": "Fire deals 2 damage divided as you choose.",
                        "layout": "split",
                        "colors": ["R", "U"],
                        "colorIdentity": ["R", "U"],
                        "types": ["Instant"],
                        "convertedManaCost": 4.0,
                        "manaCost": "{1}{R}",
                        "face": "",
                    },
                    {
                        "uuid": "uuid-fire-ice-b",
                        "name": "Fire // Ice",
                        "text": "Tap target permanent.",
                        "layout": "split",
                        "colors": ["U"],
                        "colorIdentity": ["R", "U"],
                        "types": ["Instant"],
                        "convertedManaCost": 4.0,
                        "manaCost": "{1}{U}",
                        "face": "transform",
                    },
                ],
            },
        },
    }


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await drop_db(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session
