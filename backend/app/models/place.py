"""
PlaceShare Backend - Place SQLAlchemy Model
=============================================

What:  ORM model representing the `places` table.
Who:   Used by the place service for CRUD and by Alembic for schema management.

Lifecycle:
    1. Created only by PlaceService.create_place(), together with the
       owner's `user_places` row (one transaction)
    2. title/description updated by the creator
    3. Deleted only by PlaceService.delete_place(), together with the
       owner's `user_places` row (one transaction)

creator_id is set once at creation and never reassigned.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Float, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from app.database import Base


class Place(Base):
    """A geotagged place with an address, coordinates, and exactly one creator."""

    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Free-text address as entered by the user; lat/lng are its geocoded form
    address: Mapped[str] = mapped_column(Text, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)

    # Relative path from STORAGE_ROOT, e.g. images/<uuid>.png
    image_path: Mapped[str] = mapped_column(String(255), nullable=False)

    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_places_creator_id", "creator_id"),
    )

    @property
    def location(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, title='{self.title}', creator_id={self.creator_id})>"
