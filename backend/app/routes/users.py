"""OpsLedger Backend — User Routes (/api/users, authenticated)."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.routes.forms import build_model, read_image
from app.schemas.common import ErrorResponse
from app.schemas.user import UserListResponse, UserResponse, UserUpdate
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListResponse, summary="List all users")
async def list_users(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    users = await user_service.list_users(db)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user",
)
async def get_user(
    user_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.get_user(db, user_id))


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"description": "Not allowed to change this user", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
    },
    summary="Update a user (multipart, partial)",
)
async def update_user(
    user_id: UUID,
    email: Optional[str] = Form(default=None),
    first_name: Optional[str] = Form(default=None),
    last_name: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    role: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    data = build_model(
        UserUpdate,
        {
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "password": password,
            "role": role,
        },
    )
    user = await user_service.update_user(db, current_user, user_id, data, await read_image(image))
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=204,
    responses={
        403: {"description": "Not allowed to delete this user", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Delete a user",
)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await user_service.delete_user(db, current_user, user_id)
    return Response(status_code=204)
