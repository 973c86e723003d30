"""
PlaceShare Backend - Place Service Tests
==========================================

What:  Place CRUD, ownership checks and the creator/places link invariant.
How:   Runs against a real per-test SQLite database. State is always re-read
       through a fresh session so assertions see what was committed, not
       what a session has cached.

What we test:
    ✅ Create links the place to its creator on both sides
    ✅ Create for an unknown creator persists nothing
    ✅ A failure after the link write rolls back place and link (create and delete)
    ✅ Delete by the owner removes the place and the link together
    ✅ Delete by anyone else is rejected before anything changes
    ✅ Update rules (description length, omitted fields, ownership)
    ✅ Listing by user, including the "no places" 404
    ✅ Concurrent creates for one user keep every link
"""

import asyncio
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.exceptions import AuthorizationError, DatabaseError, NotFoundError, ValidationError
from app.models.place import Place
from app.models.user import User, user_places
from app.schemas.place import Location, NewPlace
from app.services import link_manager
from app.services.auth_service import Identity
from app.services.place_service import PlaceService


def _new_place(title: str = "Empire State Building") -> NewPlace:
    return NewPlace(
        title=title,
        description="One of the most famous sky scrapers in the world!",
        address="20 W 34th St, New York, NY 10001",
        location=Location(lat=40.7484405, lng=-73.9878584),
    )


async def _place_ids_of(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(
            select(User).options(selectinload(User.places)).where(User.id == user_id)
        )
        return {place.id for place in result.scalar_one().places}


async def _count(session_factory, table) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(table))).scalar_one()


class TestCreatePlace:

    def setup_method(self):
        self.service = PlaceService()

    @pytest.mark.asyncio
    async def test_create_links_both_sides(self, session_factory, make_user):
        user = await make_user()

        async with session_factory() as session:
            place = await self.service.create_place(
                session, _new_place(), "images/a.png", Identity(user_id=user.id)
            )

        assert place.creator == user.id
        assert place.location.lat == pytest.approx(40.7484405)
        assert place.image == "images/a.png"
        assert await _place_ids_of(session_factory, user.id) == {place.id}

    @pytest.mark.asyncio
    async def test_create_for_unknown_user_persists_nothing(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(NotFoundError, match="Could not find user"):
                await self.service.create_place(
                    session, _new_place(), "images/a.png", Identity(user_id=uuid4())
                )

        assert await _count(session_factory, Place) == 0
        assert await _count(session_factory, user_places) == 0

    @pytest.mark.asyncio
    async def test_concurrent_creates_keep_every_link(self, session_factory, make_user):
        user = await make_user()
        identity = Identity(user_id=user.id)

        async def create(title):
            async with session_factory() as session:
                return await self.service.create_place(session, _new_place(title), "images/x.png", identity)

        first, second = await asyncio.gather(create("First"), create("Second"))

        assert await _place_ids_of(session_factory, user.id) == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_failure_after_link_rolls_back_place_and_link(self, session_factory, make_user):
        user = await make_user()
        seen = {}

        async def link_then_fail(tx, owner, place):
            await link_manager.link_on_create(tx, owner, place)
            linked = await tx.session.execute(select(func.count()).select_from(user_places))
            seen["links_before_failure"] = linked.scalar_one()
            raise RuntimeError("connection dropped")

        with patch("app.services.place_service.link_on_create", side_effect=link_then_fail):
            async with session_factory() as session:
                with pytest.raises(DatabaseError, match="Creating place failed"):
                    await self.service.create_place(
                        session, _new_place(), "images/a.png", Identity(user_id=user.id)
                    )

        assert seen["links_before_failure"] == 1
        assert await _count(session_factory, Place) == 0
        assert await _count(session_factory, user_places) == 0


class TestDeletePlace:

    def setup_method(self):
        self.service = PlaceService()

    async def _create(self, session_factory, user):
        async with session_factory() as session:
            return await self.service.create_place(
                session, _new_place(), "images/a.png", Identity(user_id=user.id)
            )

    @pytest.mark.asyncio
    async def test_owner_delete_removes_place_and_link(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            deleted = await self.service.delete_place(session, place.id, Identity(user_id=owner.id))

        assert deleted.place_id == place.id
        assert deleted.image_path == "images/a.png"
        assert await _count(session_factory, Place) == 0
        assert await _place_ids_of(session_factory, owner.id) == set()

    @pytest.mark.asyncio
    async def test_non_owner_delete_changes_nothing(self, session_factory, make_user):
        owner = await make_user(name="Owner")
        intruder = await make_user(name="Intruder")
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            with pytest.raises(AuthorizationError, match="not allowed to delete"):
                await self.service.delete_place(session, place.id, Identity(user_id=intruder.id))

        assert await _count(session_factory, Place) == 1
        assert await _place_ids_of(session_factory, owner.id) == {place.id}

    @pytest.mark.asyncio
    async def test_failure_after_unlink_restores_place_and_link(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)
        seen = {}

        async def unlink_then_fail(tx, user, doomed):
            await link_manager.unlink_on_delete(tx, user, doomed)
            remaining = await tx.session.execute(select(func.count()).select_from(Place))
            seen["places_before_failure"] = remaining.scalar_one()
            raise RuntimeError("connection dropped")

        with patch("app.services.place_service.unlink_on_delete", side_effect=unlink_then_fail):
            async with session_factory() as session:
                with pytest.raises(DatabaseError, match="could not delete place"):
                    await self.service.delete_place(session, place.id, Identity(user_id=owner.id))

        assert seen["places_before_failure"] == 0
        assert await _count(session_factory, Place) == 1
        assert await _place_ids_of(session_factory, owner.id) == {place.id}

    @pytest.mark.asyncio
    async def test_delete_unknown_place(self, session_factory, make_user):
        user = await make_user()
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await self.service.delete_place(session, uuid4(), Identity(user_id=user.id))


class TestUpdatePlace:

    def setup_method(self):
        self.service = PlaceService()

    async def _create(self, session_factory, user):
        async with session_factory() as session:
            return await self.service.create_place(
                session, _new_place(), "images/a.png", Identity(user_id=user.id)
            )

    @pytest.mark.asyncio
    async def test_description_of_four_characters_rejected(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            with pytest.raises(ValidationError, match="at least 5"):
                await self.service.update_place(
                    session, place.id, Identity(user_id=owner.id), description="abcd"
                )

    @pytest.mark.asyncio
    async def test_description_of_five_characters_accepted(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            updated = await self.service.update_place(
                session, place.id, Identity(user_id=owner.id), description="abcde"
            )
            await session.commit()

        assert updated.description == "abcde"
        # Omitted title keeps its value
        assert updated.title == "Empire State Building"

    @pytest.mark.asyncio
    async def test_update_title_persists(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            await self.service.update_place(
                session, place.id, Identity(user_id=owner.id), title="Empire State"
            )
            await session.commit()

        async with session_factory() as session:
            fetched = await self.service.get_place(session, place.id)
        assert fetched.title == "Empire State"
        assert fetched.description == place.description

    @pytest.mark.asyncio
    async def test_title_longer_than_column_rejected(self, session_factory, make_user):
        owner = await make_user()
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            with pytest.raises(ValidationError, match="at most 255"):
                await self.service.update_place(
                    session, place.id, Identity(user_id=owner.id), title="x" * 256
                )

    @pytest.mark.asyncio
    async def test_non_owner_update_rejected(self, session_factory, make_user):
        owner = await make_user(name="Owner")
        intruder = await make_user(name="Intruder")
        place = await self._create(session_factory, owner)

        async with session_factory() as session:
            with pytest.raises(AuthorizationError, match="not allowed to edit"):
                await self.service.update_place(
                    session, place.id, Identity(user_id=intruder.id), title="Mine now"
                )

    @pytest.mark.asyncio
    async def test_update_unknown_place(self, session_factory, make_user):
        user = await make_user()
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await self.service.update_place(session, uuid4(), Identity(user_id=user.id), title="x")


class TestReadPlaces:

    def setup_method(self):
        self.service = PlaceService()

    @pytest.mark.asyncio
    async def test_get_unknown_place(self, db_session):
        with pytest.raises(NotFoundError, match="Could not find a place"):
            await self.service.get_place(db_session, uuid4())

    @pytest.mark.asyncio
    async def test_list_by_user(self, session_factory, make_user):
        user = await make_user()
        async with session_factory() as session:
            created = await self.service.create_place(
                session, _new_place(), "images/a.png", Identity(user_id=user.id)
            )

        async with session_factory() as session:
            places = await self.service.list_places_by_user(session, user.id)
        assert [p.id for p in places] == [created.id]

    @pytest.mark.asyncio
    async def test_list_by_user_without_places_is_not_found(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFoundError):
            await self.service.list_places_by_user(db_session, user.id)

    @pytest.mark.asyncio
    async def test_list_by_unknown_user_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.list_places_by_user(db_session, uuid4())
