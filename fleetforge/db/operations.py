"""
Database CRUD operations for saved fleets.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetforge.models.db import SavedFleetDB
from fleetforge.services.roster import Roster


async def get_saved_fleet(session: AsyncSession, name: str, faction: str) -> SavedFleetDB | None:
    """
    Get a saved fleet by name and faction.

    Returns None if no such fleet was saved.
    """
    result = await session.execute(
        select(SavedFleetDB).where(
            SavedFleetDB.name == name,
            SavedFleetDB.faction == faction,
        )
    )
    return result.scalar_one_or_none()


async def list_saved_fleets(
    session: AsyncSession, faction: str, limit: int = 50
) -> list[SavedFleetDB]:
    """Saved fleets for a faction, most recently updated first."""
    result = await session.execute(
        select(SavedFleetDB)
        .where(SavedFleetDB.faction == faction)
        .order_by(SavedFleetDB.updated_at.desc(), SavedFleetDB.name)
        .limit(limit)
    )
    return list(result.scalars().all())


async def save_fleet(session: AsyncSession, name: str, roster: Roster) -> SavedFleetDB:
    """
    Insert or update a saved fleet.

    A fleet with the same name and faction is overwritten. Server-side
    timestamps are refreshed before returning.
    """
    payload = roster.model_dump(mode="json")
    existing = await get_saved_fleet(session, name, roster.faction)

    if existing:
        existing.roster = payload
        existing.points = roster.points
        await session.flush()
        await session.refresh(existing)
        return existing

    saved = SavedFleetDB(
        name=name,
        faction=roster.faction,
        roster=payload,
        points=roster.points,
    )
    session.add(saved)
    await session.flush()
    await session.refresh(saved)
    return saved


def saved_fleet_to_roster(saved: SavedFleetDB) -> Roster:
    """Convert a stored fleet back to a roster."""
    return Roster.model_validate(saved.roster)


async def delete_saved_fleet(session: AsyncSession, name: str, faction: str) -> bool:
    """
    Delete a saved fleet.

    Returns True if deleted, False if not found.
    """
    saved = await get_saved_fleet(session, name, faction)
    if not saved:
        return False

    await session.delete(saved)
    return True
