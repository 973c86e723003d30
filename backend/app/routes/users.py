"""
PlaceShare Backend - User Route Handlers
==========================================

Routes:
    GET  /api/users          public list of users
    POST /api/users/signup   multipart (name, email, password, image) → 201
    POST /api/users/login    JSON (email, password)
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.user import AuthResponse, LoginRequest, UserListEnvelope
from app.services.file_service import file_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListEnvelope, summary="List users")
async def list_users(db: AsyncSession = Depends(get_db_session)) -> UserListEnvelope:
    users = await user_service.list_users(db)
    return UserListEnvelope(users=users)


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={422: {"description": "Invalid inputs or email taken", "model": ErrorResponse}},
    summary="Create an account",
)
async def signup(
    name: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    image: UploadFile = File(..., description="Avatar image (PNG, JPG or JPEG, max 500KB)"),
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    try:
        content = await image.read()
        image_path = await file_service.validate_and_store(
            filename=image.filename or "upload",
            content=content,
            content_length=image.size,
        )
    finally:
        await image.close()

    try:
        return await user_service.signup(db, name, email, password, image_path)
    except Exception:
        await file_service.cleanup_file(image_path)
        raise


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={403: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.login(db, body.email, body.password)
