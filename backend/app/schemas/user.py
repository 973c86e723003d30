"""
PlaceShare Backend - User & Auth Schemas
==========================================

What:  Pydantic models for the user listing, signup and login endpoints.

Auth responses use camelCase keys (`userId`) because the SPA stores them
verbatim in its auth context.
"""

import uuid
from typing import List

from pydantic import BaseModel, Field

from app.models.user import User


MIN_PASSWORD_LENGTH = 6


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""
    id: uuid.UUID
    name: str
    email: str
    image: str = Field(description="Relative path of the avatar image")
    places: List[uuid.UUID] = Field(description="IDs of the places this user created")

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            image=user.image_path,
            places=[place.id for place in user.places],
        )


class UserListEnvelope(BaseModel):
    users: List[UserResponse]


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Returned by signup and login."""
    user_id: uuid.UUID = Field(serialization_alias="userId")
    email: str
    token: str = Field(description="Bearer token for the Authorization header")
