"""
PlaceShare Backend - User/Place Link Manager
==============================================

What:  Keeps `Place.creator_id` and the owner's `user_places` membership in
       lockstep.
How:   Both functions take the open Transaction of the place write they
       belong to, so the link changes commit or roll back with the place.
Who:   Called only by PlaceService.create_place() and delete_place().

No other code path may add or remove a `user_places` row.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.database import Transaction
from app.models.place import Place
from app.models.user import User

logger = logging.getLogger(__name__)


async def load_owner(tx: Transaction, user_id) -> User | None:
    """Load a user together with its places collection, ready for linking."""
    result = await tx.session.execute(
        select(User).options(selectinload(User.places)).where(User.id == user_id)
    )
    return result.scalar_one_or_none()


async def link_on_create(tx: Transaction, user: User, place: Place) -> None:
    """
    Register a new place under its creator.

    `user` must have been loaded through load_owner() in the same transaction.
    """
    place.creator_id = user.id
    tx.session.add(place)
    user.places.append(place)
    await tx.session.flush()
    logger.debug("Linked place %s to user %s", place.id, user.id)


async def unlink_on_delete(tx: Transaction, user: User | None, place: Place) -> None:
    """
    Remove a place and its membership in the creator's places.

    The membership row is flushed away before the place row so the link
    table never points at a missing place.
    """
    if user is not None:
        if place in user.places:
            user.places.remove(place)
            await tx.session.flush()
        else:
            logger.warning("Place %s missing from places of user %s", place.id, user.id)
    else:
        logger.warning("Creator %s of place %s no longer exists", place.creator_id, place.id)

    await tx.session.delete(place)
    await tx.session.flush()
    logger.debug("Unlinked and removed place %s", place.id)
