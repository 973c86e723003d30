"""
PlaceShare Backend - Place Service (Place Repository)
=======================================================

What:  CRUD operations on places with existence and ownership checks.
How:   Reads go straight through the request session. Create and delete run
       inside begin_transaction() and change the owner link through the
       link manager, so a place and its `user_places` row always commit
       (or roll back) together. Update touches one row only.
Who:   Called by the place route handlers.

Operation flow:
    get_place            → NotFoundError if absent
    list_places_by_user  → NotFoundError if user unknown OR owns nothing
    create_place         → NotFoundError if creator unknown; place + link atomically
    update_place         → ValidationError / NotFoundError / AuthorizationError
    delete_place         → NotFoundError / AuthorizationError (checked before
                           the delete); place + link atomically; returns the
                           image path for best-effort cleanup

Error Handling Strategy:
    Application errors propagate as-is. Anything else raised while talking
    to the database (including transaction conflicts between concurrent
    writers) is logged and wrapped in DatabaseError so the client only sees
    a generic 500.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import begin_transaction
from app.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    PlaceShareError,
    ValidationError,
)
from app.models.place import Place
from app.models.user import User
from app.schemas.place import (
    MAX_TITLE_LENGTH,
    MIN_DESCRIPTION_LENGTH,
    DeletedPlace,
    NewPlace,
    PlaceResponse,
)
from app.services.auth_service import Identity
from app.services.link_manager import link_on_create, load_owner, unlink_on_delete

logger = logging.getLogger(__name__)


class PlaceService:
    """Stateless; every call receives the request's database session."""

    async def get_place(self, db: AsyncSession, place_id: UUID) -> PlaceResponse:
        try:
            place = await db.get(Place, place_id)
        except Exception as e:
            logger.error("Database error fetching place %s: %s", place_id, str(e))
            raise DatabaseError(
                message="Something went wrong, could not find a place.",
                context={"place_id": str(place_id)},
            )

        if place is None:
            raise NotFoundError(
                resource="place",
                resource_id=str(place_id),
                message="Could not find a place for the provided id.",
            )
        return PlaceResponse.from_model(place)

    async def list_places_by_user(self, db: AsyncSession, user_id: UUID) -> List[PlaceResponse]:
        """
        List the places a user created.

        A user that exists but owns no places is reported exactly like an
        unknown user (404). Callers must not expect an empty success.
        """
        try:
            result = await db.execute(
                select(User).options(selectinload(User.places)).where(User.id == user_id)
            )
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error listing places of user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Fetching places failed, please try again.",
                context={"user_id": str(user_id)},
            )

        if user is None or not user.places:
            raise NotFoundError(
                resource="places",
                resource_id=str(user_id),
                message="Could not find places for the provided user id.",
            )
        return [PlaceResponse.from_model(place) for place in user.places]

    async def create_place(
        self,
        db: AsyncSession,
        fields: NewPlace,
        image_path: str,
        identity: Identity,
    ) -> PlaceResponse:
        """
        Persist a new place and append it to the creator's places.

        Coordinates must already be resolved (fields.location). Both writes
        happen in one transaction; on any failure nothing is persisted.

        Raises:
            NotFoundError: identity.user_id does not match a user
            DatabaseError: the transaction failed and was rolled back
        """
        try:
            async with begin_transaction(db) as tx:
                user = await load_owner(tx, identity.user_id)
                if user is None:
                    raise NotFoundError(
                        resource="user",
                        resource_id=str(identity.user_id),
                        message="Could not find user for provided id.",
                    )

                place = Place(
                    title=fields.title,
                    description=fields.description,
                    address=fields.address,
                    lat=fields.location.lat,
                    lng=fields.location.lng,
                    image_path=image_path,
                    creator_id=user.id,
                )
                await link_on_create(tx, user, place)

        except PlaceShareError:
            raise
        except Exception as e:
            logger.error("Creating place failed for user %s: %s", identity.user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Creating place failed, please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Place %s created by user %s", place.id, identity.user_id)
        return PlaceResponse.from_model(place)

    async def update_place(
        self,
        db: AsyncSession,
        place_id: UUID,
        identity: Identity,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PlaceResponse:
        """
        Change title and/or description of a place owned by the requester.

        Omitted fields and an empty title keep their current value. The
        creator link is not affected, so this is a single-row write.
        """
        if description is not None and len(description) < MIN_DESCRIPTION_LENGTH:
            raise ValidationError(
                message=f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters long.",
                field="description",
            )
        if title is not None and len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(
                message=f"Title must be at most {MAX_TITLE_LENGTH} characters long.",
                field="title",
            )

        try:
            place = await db.get(Place, place_id)
            if place is None:
                raise NotFoundError(
                    resource="place",
                    resource_id=str(place_id),
                    message="Could not find a place for the provided id.",
                )
            if place.creator_id != identity.user_id:
                raise AuthorizationError(
                    message="You are not allowed to edit this place.",
                    context={"place_id": str(place_id), "requester": str(identity.user_id)},
                )

            place.title = title or place.title
            place.description = description or place.description
            await db.flush()

        except PlaceShareError:
            raise
        except Exception as e:
            logger.error("Updating place %s failed: %s", place_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Something went wrong, could not update place.",
                context={"place_id": str(place_id)},
            )

        return PlaceResponse.from_model(place)

    async def delete_place(
        self,
        db: AsyncSession,
        place_id: UUID,
        identity: Identity,
    ) -> DeletedPlace:
        """
        Delete a place owned by the requester and unlink it from its creator.

        Ownership is verified on the locked row before anything is removed;
        a failed check aborts the transaction with nothing deleted. The
        caller is responsible for removing the returned image path once the
        transaction has committed.
        """
        try:
            async with begin_transaction(db) as tx:
                result = await tx.session.execute(
                    select(Place).where(Place.id == place_id).with_for_update()
                )
                place = result.scalar_one_or_none()
                if place is None:
                    raise NotFoundError(
                        resource="place",
                        resource_id=str(place_id),
                        message="Could not find place for this id.",
                    )
                if place.creator_id != identity.user_id:
                    raise AuthorizationError(
                        message="You are not allowed to delete this place.",
                        context={"place_id": str(place_id), "requester": str(identity.user_id)},
                    )

                owner = await load_owner(tx, place.creator_id)
                deleted = DeletedPlace(place_id=place.id, image_path=place.image_path)
                await unlink_on_delete(tx, owner, place)

        except PlaceShareError:
            raise
        except Exception as e:
            logger.error("Deleting place %s failed: %s", place_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Something went wrong, could not delete place.",
                context={"place_id": str(place_id)},
            )

        logger.info("Place %s deleted by user %s", place_id, identity.user_id)
        return deleted


place_service = PlaceService()
