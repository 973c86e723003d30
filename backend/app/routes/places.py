"""
PlaceShare Backend - Place Route Handlers
===========================================

What:  HTTP endpoints for reading and mutating places.
How:   Thin adapters: extract request data, authenticate through the
       `get_identity` dependency, call the geocoder / image store / place
       service, shape the JSON response.

Routes:
    GET    /api/places/{pid}        public
    GET    /api/places/user/{uid}   public
    POST   /api/places              auth, multipart (title, description, address, image)
    PATCH  /api/places/{pid}        auth, JSON (title?, description?)
    DELETE /api/places/{pid}        auth

Create flow:
    inputs → geocode address → store image → place_service.create_place
    If anything after the image write fails, the image is removed again
    before the error propagates.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_identity
from app.exceptions import ValidationError
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.place import (
    MAX_TITLE_LENGTH,
    MIN_DESCRIPTION_LENGTH,
    NewPlace,
    PlaceEnvelope,
    PlaceListEnvelope,
    PlaceUpdateRequest,
)
from app.services.auth_service import Identity
from app.services.file_service import file_service
from app.services.geocoding_service import geocoding_service
from app.services.place_service import place_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["Places"])

AUTH_RESPONSES = {
    401: {"description": "Token rejected or requester is not the creator", "model": ErrorResponse},
    403: {"description": "Missing or malformed Authorization header", "model": ErrorResponse},
}


@router.get(
    "/{place_id}",
    response_model=PlaceEnvelope,
    responses={404: {"description": "Place not found", "model": ErrorResponse}},
    summary="Get a single place by ID",
)
async def get_place(
    place_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    place = await place_service.get_place(db, place_id)
    return PlaceEnvelope(place=place)


@router.get(
    "/user/{user_id}",
    response_model=PlaceListEnvelope,
    responses={404: {"description": "Unknown user or user has no places", "model": ErrorResponse}},
    summary="List the places created by a user",
)
async def list_places_by_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceListEnvelope:
    places = await place_service.list_places_by_user(db, user_id)
    return PlaceListEnvelope(places=places)


@router.post(
    "",
    status_code=201,
    response_model=PlaceEnvelope,
    responses={
        **AUTH_RESPONSES,
        404: {"description": "Creator not found", "model": ErrorResponse},
        422: {"description": "Invalid inputs, image or address", "model": ErrorResponse},
    },
    summary="Create a place",
    description=(
        "Create a place from a title, description, free-text address and an image "
        "(PNG or JPEG, max 500KB). The address is geocoded to coordinates."
    ),
)
async def create_place(
    title: str = Form(default=""),
    description: str = Form(default=""),
    address: str = Form(default=""),
    image: UploadFile = File(..., description="Place image (PNG, JPG or JPEG, max 500KB)"),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    try:
        if (
            not title.strip()
            or len(title) > MAX_TITLE_LENGTH
            or len(description) < MIN_DESCRIPTION_LENGTH
            or not address.strip()
        ):
            raise ValidationError(
                message="Invalid inputs passed, please check your data.",
                context={"title": bool(title.strip()), "address": bool(address.strip())},
            )

        location = await geocoding_service.resolve(address)
        content = await image.read()
        image_path = await file_service.validate_and_store(
            filename=image.filename or "upload",
            content=content,
            content_length=image.size,
        )
    finally:
        await image.close()

    fields = NewPlace(title=title, description=description, address=address, location=location)
    try:
        place = await place_service.create_place(db, fields, image_path, identity)
    except Exception:
        await file_service.cleanup_file(image_path)
        raise

    return PlaceEnvelope(place=place)


@router.patch(
    "/{place_id}",
    response_model=PlaceEnvelope,
    responses={
        **AUTH_RESPONSES,
        404: {"description": "Place not found", "model": ErrorResponse},
        422: {"description": "Description too short", "model": ErrorResponse},
    },
    summary="Update title and/or description of your place",
)
async def update_place(
    place_id: UUID,
    body: PlaceUpdateRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    place = await place_service.update_place(
        db,
        place_id,
        identity,
        title=body.title,
        description=body.description,
    )
    return PlaceEnvelope(place=place)


@router.delete(
    "/{place_id}",
    response_model=MessageResponse,
    responses={
        **AUTH_RESPONSES,
        404: {"description": "Place not found", "model": ErrorResponse},
    },
    summary="Delete your place",
)
async def delete_place(
    place_id: UUID,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    deleted = await place_service.delete_place(db, place_id, identity)
    # Image removal runs after the response; failures are only logged
    background_tasks.add_task(file_service.cleanup_file, deleted.image_path)
    return MessageResponse(message="Deleted place.")
