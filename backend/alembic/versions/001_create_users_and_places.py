"""Create users, places and user_places tables

Revision ID: 001
Revises: None
Create Date: 2026-10-01 00:00:00.000000+00:00

What:  Creates the initial schema: registered users, their places, and the
       user_places link table that backs User.places.
How:   UUID primary keys generated by the application, TIMESTAMP WITH TIME
       ZONE for creation times.

Rollback: downgrade() drops all three tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users first; places and user_places both reference it."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Lower-cased login email, unique across users",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="pbkdf2_sha256$<iterations>$<salt>$<hash>",
        ),
        sa.Column(
            "image_path",
            sa.String(255),
            nullable=False,
            comment="Relative path from storage root to the avatar image",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "places",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column(
            "image_path",
            sa.String(255),
            nullable=False,
            comment="Relative path from storage root to the place image",
        ),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # "Places of user X" is the main read path besides lookup by id
    op.create_index("idx_places_creator_id", "places", ["creator_id"])

    op.create_table(
        "user_places",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("place_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["place_id"], ["places.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "place_id"),
    )


def downgrade() -> None:
    """
    Drop all tables in reverse dependency order.

    WARNING: destructive. Write a forward migration instead once real data exists.
    """
    op.drop_table("user_places")
    op.drop_index("idx_places_creator_id", table_name="places")
    op.drop_table("places")
    op.drop_table("users")
