from collections.abc import Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fleetforge.db.database import get_session
from fleetforge.main import app
from fleetforge.models.catalog import CatalogKind, CatalogRecord, ShipRecord, UpgradeRecord
from fleetforge.models.db import Base
from fleetforge.models.fleet import FleetState, ShipEntry, UpgradeEntry
from fleetforge.models.ledger import UniquenessLedger
from fleetforge.services.catalog import CatalogAccessor, get_catalog_accessor
from fleetforge.services.fleet_session import FleetSession, SessionRegistry, get_session_registry

IMAGE_BASE = "https://images.test"


@pytest.fixture
def catalog_snapshot() -> dict[str, Any]:
    """A small realized catalog covering every record kind and variant."""
    return {
        "ships": {
            "ships": {
                "cr90a": {
                    "size": "small",
                    "models": {
                        "cr90-a": {
                            "name": "CR90 Corvette A",
                            "faction": "rebel",
                            "points": 44,
                            "cardimage": "https://cdn.test/cr90a.png",
                            "upgrades": ["officer", "weapons-team", "offensive-retrofit", "title"],
                        },
                    },
                },
                "cr90b": {
                    "size": "small",
                    "models": {
                        "cr90-b": {
                            "name": "CR90 Corvette B",
                            "faction": "rebel",
                            "points": 39,
                            "upgrades": ["officer", "offensive-retrofit", "title"],
                        },
                    },
                },
                "mc80": {
                    "size": "large",
                    "models": {
                        "mc80-assault": {
                            "name": "MC80 Assault Cruiser",
                            "faction": "rebel",
                            "points": 114,
                            "traits": ["MC"],
                            "upgrades": [
                                "commander",
                                "officer",
                                "weapons-team",
                                "offensive-retrofit",
                                "defensive-retrofit",
                                "fleet-support",
                                "title",
                            ],
                        },
                    },
                },
                "isd": {
                    "size": "large",
                    "models": {
                        "isd-i": {
                            "name": "Imperial I-class Star Destroyer",
                            "faction": "empire",
                            "points": 120,
                        },
                    },
                },
                "ssd": {
                    "size": "huge",
                    "models": {
                        "executor": {
                            "name": "Executor I-class Star Dreadnought",
                            "faction": "empire",
                            "points": 411,
                            "unique": True,
                        },
                    },
                },
            }
        },
        "legacyShips": {
            "ships": {
                "cr90a": {
                    "size": "small",
                    "models": {
                        "cr90-a": {"name": "CR90 Corvette A", "faction": "rebel", "points": 44},
                    },
                },
            }
        },
        "squadrons": {
            "squadrons": {
                "x-wing": {
                    "name": "X-wing Squadron",
                    "faction": "rebel",
                    "points": 13,
                    "cardimage": "images/xwing.png",
                },
                "dodonnas-pride": {
                    "name": "Dodonna's Pride",
                    "faction": "rebel",
                    "points": 23,
                    "unique": True,
                },
                "tycho": {
                    "name": "A-wing Squadron",
                    "ace-name": "Tycho Celchu",
                    "faction": "rebel",
                    "points": 16,
                    "unique": True,
                    "unique-class": ["HomeOneClass"],
                },
                "keyan": {
                    "name": "B-wing Squadron",
                    "ace-name": "Keyan Farlander",
                    "faction": "rebel",
                    "points": 20,
                    "unique": True,
                    "unique-class": ["HomeOneClass"],
                },
                "tie-fighter": {"name": "TIE Fighter Squadron", "faction": "empire", "points": 8},
                "broken": {"faction": "rebel", "points": 5},
            }
        },
        "upgrades": {
            "upgrades": {
                "engine-retrofit": {
                    "name": "Engine Retrofit",
                    "type": "offensive-retrofit",
                    "modification": True,
                    "points": 5,
                },
                "hull-plating": {
                    "name": "Hull Plating",
                    "type": "defensive-retrofit",
                    "modification": True,
                    "points": 4,
                },
                "jainas-light": {
                    "name": "Jaina's Light",
                    "type": "title",
                    "faction": "rebel",
                    "bound_shiptype": "cr90a",
                    "points": 2,
                    "restrictions": {"size": ["large"], "traits": ["MC"]},
                },
                "relentless": {
                    "name": "Relentless",
                    "type": "title",
                    "faction": "empire",
                    "bound_shiptype": "isd",
                    "points": 3,
                },
                "gunnery-team": {
                    "name": "Gunnery Team",
                    "type": "weapons-team",
                    "points": 7,
                    "restrictions": {"size": ["large", "huge", " "]},
                },
                "ordnance-experts": {
                    "name": "Ordnance Experts",
                    "type": "weapons-team",
                    "points": 4,
                    "restrictions": {"disqual_upgrades": ["officer"]},
                },
                "strategic-adviser": {
                    "name": "Strategic Adviser",
                    "type": "officer",
                    "points": 4,
                    "restrictions": {"disable_upgrades": ["commander"]},
                },
                "slicer-tools": {
                    "name": "Slicer Tools",
                    "type": "offensive-retrofit",
                    "points": 7,
                    "restrictions": {"traits": ["MC", ""]},
                },
                "mc80-refit": {
                    "name": "MC80 Refit",
                    "type": "offensive-retrofit",
                    "bound_shiptype": "mc80",
                    "points": 3,
                },
                "ackbar": {
                    "name": "Admiral Ackbar",
                    "type": "commander",
                    "faction": "rebel",
                    "unique": True,
                    "points": 38,
                },
                "mon-mothma": {
                    "name": "Mon Mothma",
                    "type": "commander",
                    "faction": "rebel",
                    "unique": True,
                    "points": 30,
                },
                "lando": {
                    "name": "Lando Calrissian",
                    "type": "officer",
                    "faction": "rebel",
                    "unique": True,
                    "unique-class": ["Lando"],
                    "points": 4,
                },
                "landos-gambit": {
                    "name": "Lando's Gambit",
                    "type": "fleet-support",
                    "faction": "rebel",
                    "unique-class": ["Lando"],
                    "points": 3,
                },
                "expanded-hangar": {
                    "name": "Expanded Hangar Bay",
                    "type": "offensive-retrofit",
                    "points": 5,
                    "restrictions": {"enable_upgrades": ["fighter-coordination"]},
                },
                "mystery": {"name": "Mystery Card", "points": 2},
            }
        },
        "legacyUpgrades": {
            "upgrades": {
                "engine-retrofit": {
                    "name": "Engine Retrofit",
                    "type": "offensive-retrofit",
                    "modification": True,
                    "points": 6,
                    "cardimage": "legacy/engine-retrofit.png",
                },
            }
        },
        "objectives": {
            "objectives": {
                "o1": {"_id": "most-wanted", "name": "Most Wanted", "type": "assault"},
                "o2": {"_id": "precision-strike", "name": "Precision Strike", "type": "Assault"},
                "o3": {"_id": "fire-lanes", "name": "Fire Lanes", "type": "defense"},
                "o4": {
                    "_id": "superior-positions",
                    "name": "Superior Positions",
                    "type": "navigation",
                },
                "o5": {"_id": "bad-objective", "name": "Bad Objective", "type": "skirmish"},
            }
        },
    }


@pytest.fixture
def accessor(catalog_snapshot: dict[str, Any]) -> CatalogAccessor:
    return CatalogAccessor(catalog_snapshot, image_base_url=IMAGE_BASE)


@pytest.fixture
def rebel_fleet() -> FleetState:
    return FleetState(faction="rebel")


@pytest.fixture
def empire_fleet() -> FleetState:
    return FleetState(faction="empire")


@pytest.fixture
def ledger() -> UniquenessLedger:
    return UniquenessLedger()


@pytest.fixture
def fleet_session(accessor: CatalogAccessor) -> FleetSession:
    return FleetSession(accessor, "rebel")


@pytest.fixture
def find(accessor: CatalogAccessor) -> Callable[[CatalogKind, str], CatalogRecord]:
    """Look up a record by display name, base catalog first."""

    def _find(kind: CatalogKind, name: str) -> CatalogRecord:
        record = accessor.find_by_name(kind, name)
        assert record is not None, f"{name} missing from test catalog"
        return record

    return _find


@pytest.fixture
def add_ship(find) -> Callable[[FleetState, str], ShipEntry]:
    """Put a ship straight into a fleet, bypassing the selection flow."""

    def _add_ship(fleet: FleetState, name: str) -> ShipEntry:
        record = find(CatalogKind.SHIP, name)
        assert isinstance(record, ShipRecord)
        entry = ShipEntry(record=record)
        fleet.ships.append(entry)
        return entry

    return _add_ship


@pytest.fixture
def attach(find) -> Callable[[ShipEntry, str], UpgradeEntry]:
    """Attach an upgrade straight onto a ship, bypassing the selection flow."""

    def _attach(ship: ShipEntry, name: str) -> UpgradeEntry:
        record = find(CatalogKind.UPGRADE, name)
        assert isinstance(record, UpgradeRecord)
        entry = UpgradeEntry(record=record)
        ship.upgrades.append(entry)
        return entry

    return _attach


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
async def client(async_engine, accessor: CatalogAccessor, registry: SessionRegistry):
    """Async test client with database, catalog and session registry overridden."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_catalog_accessor] = lambda: accessor
    app.dependency_overrides[get_session_registry] = lambda: registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
