"""
Saved fleet API endpoints.

Fleets are saved per faction as name-based rosters.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fleetforge.db import (
    delete_saved_fleet,
    get_saved_fleet,
    list_saved_fleets,
    save_fleet,
    saved_fleet_to_roster,
)
from fleetforge.db.database import get_session
from fleetforge.models.db import SavedFleetDB
from fleetforge.services.catalog import CatalogAccessor, get_catalog_accessor
from fleetforge.services.fleet_session import (
    SessionRegistry,
    get_session_registry,
    normalize_faction,
)
from fleetforge.services.roster import Roster, fleet_from_roster, fleet_to_roster

router = APIRouter(prefix="/saved-fleets", tags=["saved-fleets"])


class SaveFleetRequest(BaseModel):
    """
    Save a fleet under a name.

    Give either a live session id or a roster.
    """

    name: str = Field(..., min_length=1, max_length=255)
    session_id: str | None = None
    roster: Roster | None = None


class SavedFleetResponse(BaseModel):
    name: str
    faction: str
    points: int
    roster: Roster
    updated_at: datetime | None = None
    warnings: list[str] = Field(
        default_factory=list,
        description="Roster entries dropped because they were unknown or illegal",
    )


class SavedFleetSummary(BaseModel):
    name: str
    faction: str
    points: int
    updated_at: datetime | None = None


class SavedFleetListResponse(BaseModel):
    faction: str
    fleets: list[SavedFleetSummary]
    count: int


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    name: str
    faction: str
    deleted: bool


def saved_fleet_response(
    saved: SavedFleetDB, warnings: list[str] | None = None
) -> SavedFleetResponse:
    return SavedFleetResponse(
        name=saved.name,
        faction=saved.faction,
        points=saved.points,
        roster=saved_fleet_to_roster(saved),
        updated_at=saved.updated_at,
        warnings=warnings or [],
    )


@router.post("", response_model=SavedFleetResponse, status_code=status.HTTP_201_CREATED)
async def save(
    request: SaveFleetRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
    accessor: Annotated[CatalogAccessor, Depends(get_catalog_accessor)],
) -> SavedFleetResponse:
    """
    Save a fleet. A fleet with the same name and faction is overwritten.

    A posted roster is rebuilt through the engine first, so its points are
    recomputed and unknown or illegal entries are dropped.
    """
    if not request.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Fleet name cannot be empty",
        )

    warnings: list[str] = []
    if request.session_id is not None:
        roster = fleet_to_roster(registry.get(request.session_id).fleet)
    elif request.roster is not None:
        rebuilt = fleet_from_roster(request.roster, accessor)
        roster = fleet_to_roster(rebuilt.fleet)
        warnings = rebuilt.warnings
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a session_id or a roster to save",
        )

    saved = await save_fleet(session, request.name.strip(), roster)
    return saved_fleet_response(saved, warnings)


@router.get("/{faction}", response_model=SavedFleetListResponse)
async def list_fleets(
    faction: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> SavedFleetListResponse:
    canonical = normalize_faction(faction)
    fleets = await list_saved_fleets(session, canonical, limit=limit)
    return SavedFleetListResponse(
        faction=canonical,
        fleets=[
            SavedFleetSummary(
                name=f.name,
                faction=f.faction,
                points=f.points,
                updated_at=f.updated_at,
            )
            for f in fleets
        ],
        count=len(fleets),
    )


@router.get("/{faction}/{name}", response_model=SavedFleetResponse)
async def get_fleet(
    faction: str,
    name: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SavedFleetResponse:
    canonical = normalize_faction(faction)
    saved = await get_saved_fleet(session, name, canonical)
    if not saved:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No saved {canonical} fleet named '{name}'",
        )
    return saved_fleet_response(saved)


@router.delete("/{faction}/{name}", response_model=DeleteResponse)
async def delete_fleet(
    faction: str,
    name: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    canonical = normalize_faction(faction)
    deleted = await delete_saved_fleet(session, name, canonical)
    return DeleteResponse(name=name, faction=canonical, deleted=deleted)
