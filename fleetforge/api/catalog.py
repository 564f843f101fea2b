"""
Catalog API endpoints.

Read-only listings of normalized catalog records.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from fleetforge.models.availability import PointWindow
from fleetforge.models.catalog import CatalogKind, CatalogRecord
from fleetforge.services.catalog import CatalogAccessor, get_catalog_accessor
from fleetforge.services.fleet_session import normalize_faction

router = APIRouter(prefix="/catalog", tags=["catalog"])


class CatalogRecordResponse(BaseModel):
    """One normalized catalog record."""

    id: str
    kind: CatalogKind
    name: str
    faction: list[str] = Field(default_factory=list)
    points: int = 0
    unique: bool = False
    cardimage: str = ""
    variant: str = ""


class CatalogListResponse(BaseModel):
    kind: CatalogKind
    records: list[CatalogRecordResponse]
    count: int


def record_to_response(record: CatalogRecord) -> CatalogRecordResponse:
    return CatalogRecordResponse(
        id=record.id,
        kind=record.kind,
        name=record.name,
        faction=list(record.faction),
        points=record.points,
        unique=record.unique,
        cardimage=record.cardimage,
        variant=record.variant.value,
    )


@router.get("/{kind}", response_model=CatalogListResponse)
async def list_catalog(
    kind: CatalogKind,
    accessor: Annotated[CatalogAccessor, Depends(get_catalog_accessor)],
    faction: str | None = None,
    min_points: Annotated[int, Query(ge=0)] = 0,
    max_points: Annotated[int | None, Query(ge=0)] = None,
) -> CatalogListResponse:
    """
    List every record of one kind, merged across catalog variants.

    A missing catalog yields an empty listing rather than an error.
    """
    try:
        window = PointWindow(min_points=min_points, max_points=max_points)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    records = [r for r in accessor.list_by_type(kind) if r.points in window]
    if faction:
        canonical = normalize_faction(faction)
        records = [r for r in records if r.allows_faction(canonical)]

    return CatalogListResponse(
        kind=kind,
        records=[record_to_response(r) for r in records],
        count=len(records),
    )
