"""
PlaceShare Backend - Place Request/Response Schemas
=====================================================

What:  Pydantic models defining the place API contract.
How:   FastAPI validates request bodies against these and serializes
       responses through them (also feeds the OpenAPI docs).

Response shapes mirror what the frontend expects:
    GET  /api/places/{pid}       → {"place": PlaceResponse}
    GET  /api/places/user/{uid}  → {"places": [PlaceResponse, ...]}
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.place import Place


MIN_DESCRIPTION_LENGTH = 5
# places.title is String(255)
MAX_TITLE_LENGTH = 255


class Location(BaseModel):
    """Geocoded coordinates of an address."""
    lat: float = Field(description="Latitude in decimal degrees")
    lng: float = Field(description="Longitude in decimal degrees")


class PlaceResponse(BaseModel):
    """
    What:  Full representation of a place.
    Who:   Returned by every place endpoint.

    `image` is the relative storage path; the frontend prefixes it with
    the backend URL and `/uploads/`.
    """
    id: uuid.UUID = Field(description="Unique place identifier (UUID)")
    title: str
    description: str
    address: str
    location: Location
    image: str = Field(description="Relative path of the stored image")
    creator: uuid.UUID = Field(description="ID of the user who created the place")

    @classmethod
    def from_model(cls, place: Place) -> "PlaceResponse":
        return cls(
            id=place.id,
            title=place.title,
            description=place.description,
            address=place.address,
            location=Location(lat=place.lat, lng=place.lng),
            image=place.image_path,
            creator=place.creator_id,
        )


class PlaceEnvelope(BaseModel):
    place: PlaceResponse


class PlaceListEnvelope(BaseModel):
    places: List[PlaceResponse]


class PlaceUpdateRequest(BaseModel):
    """
    What:  Body of PATCH /api/places/{pid}.

    Both fields are optional and an omitted field keeps its current value.
    An empty title also keeps the current title; an empty description is
    rejected like any other description shorter than the minimum. Both
    length rules are enforced by the service so they apply to every caller.
    """
    title: Optional[str] = Field(default=None, description="New title")
    description: Optional[str] = Field(
        default=None,
        description=f"New description (at least {MIN_DESCRIPTION_LENGTH} characters)",
    )


@dataclass(frozen=True)
class NewPlace:
    """Validated user input for a place that is about to be created."""
    title: str
    description: str
    address: str
    location: Location


@dataclass(frozen=True)
class DeletedPlace:
    """Outcome of a committed delete: what was removed and which image to clean up."""
    place_id: uuid.UUID
    image_path: str
