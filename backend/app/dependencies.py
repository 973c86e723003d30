"""
PlaceShare Backend - FastAPI Dependencies
===========================================

Usage:
    from app.dependencies import get_identity

    @router.delete("/places/{pid}")
    async def delete_place(identity: Identity = Depends(get_identity)):
        ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError
from app.services.auth_service import Identity, credential_gate

# auto_error=False: a missing or non-Bearer header yields None so the
# rejection goes through AuthenticationError and the standard envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """
    Authenticate the request from its `Authorization: Bearer <token>` header.

    No header, another scheme or an empty token → AuthenticationError(403).
    Anything else is verified by the credential gate (401 on failure).

    Preflight OPTIONS requests never reach this dependency; CORSMiddleware
    answers them before routing.
    """
    if credentials is None:
        raise AuthenticationError(
            status_code=AuthenticationError.FORBIDDEN,
            context={"reason": "missing or malformed Authorization header"},
        )
    return credential_gate.authenticate(credentials.credentials)
