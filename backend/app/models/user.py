"""
PlaceShare Backend - User SQLAlchemy Model
============================================

What:  ORM model for the `users` table and the `user_places` link table.
Who:   Used by the user service (signup/login/listing) and by the link
       manager, which is the only writer of `user_places`.

`User.places` is the owner-side half of the user/place relation. The other
half is `Place.creator_id`. Both are written together in one transaction by
app.services.link_manager; nothing else may touch `user_places`.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Column, ForeignKey, String, Table, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TIMESTAMP

from app.database import Base
from app.models.place import Place


# ── Link Table ────────────────────────────────────────────────────────────
# One row per (owner, place). Composite primary key makes a duplicate link
# impossible, so concurrent creates for one user can never collide.
user_places = Table(
    "user_places",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("place_id", Uuid, ForeignKey("places.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """A registered user. Owns zero or more places."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Uniqueness is enforced by the database; signup maps the violation to a 422
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    # Salted PBKDF2 hash, never the raw password (see auth_service.hash_password)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relative path of the avatar image under STORAGE_ROOT
    image_path: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # lazy="raise": async sessions cannot lazy-load, so every reader must
    # ask for the collection explicitly with selectinload()
    places: Mapped[List[Place]] = relationship(
        secondary=user_places,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
