"""
SQLAlchemy ORM models for persistent storage.

Saved fleets are stored as name-based rosters, the same shape roster
serialization produces, so a saved fleet survives catalog id changes.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SavedFleetDB(Base):
    """
    A named fleet roster saved for a faction.

    Each faction can hold many saved fleets; names are unique per faction.
    """

    __tablename__ = "saved_fleets"
    __table_args__ = (UniqueConstraint("name", "faction", name="uq_fleet_name_faction"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    faction: Mapped[str] = mapped_column(String(50), index=True)

    # Roster stored as JSON: {"faction", "ships", "squadrons", "objectives", "points"}
    roster: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    points: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<SavedFleetDB(name={self.name}, faction={self.faction})>"
