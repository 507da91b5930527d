"""
OpsLedger Backend — Authentication Routes
===========================================

What:  /api/auth: register, login, refresh, logout and the password reset
       flow.
How:   The access token travels in the response body; the refresh token is
       set as an HTTP-only cookie (settings.refresh_cookie_name) so browser
       JavaScript never sees it.

Endpoints:
    POST /api/auth/register                          201 + cookie
    POST /api/auth/login                             200 + cookie
    GET  /api/auth/refresh                           200 (new access token)
    POST /api/auth/logout                            200, or 204 without cookie
    POST /api/auth/reset-password                    200, email sent in background
    POST /api/auth/{user_id}/reset-password/{token}  200
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.routes.forms import build_model, read_image
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (
    AccessTokenResponse,
    AuthResponse,
    LoginRequest,
    NewPasswordRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from app.services.auth_service import IssuedTokens, auth_service
from app.services.email_service import email_service
from app.services.security import refresh_token_lifetime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _set_refresh_cookie(response: Response, tokens: IssuedTokens) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=tokens.refresh_token,
        max_age=int(refresh_token_lifetime(tokens.remember_me).total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none" if settings.cookie_secure else "lax",
    )


def _auth_response(tokens: IssuedTokens) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(tokens.user),
        access_token=tokens.access_token,
    )


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid input or image", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    response: Response,
    email: str = Form(...),
    first_name: str = Form(...),
    last_name: str = Form(...),
    password: str = Form(...),
    image: Optional[UploadFile] = File(default=None, description="JPEG or PNG, max 5MB"),
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    data = build_model(
        RegisterRequest,
        {"email": email, "first_name": first_name, "last_name": last_name, "password": password},
    )
    tokens = await auth_service.register(db, data, await read_image(image))
    _set_refresh_cookie(response, tokens)
    return _auth_response(tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    tokens = await auth_service.login(db, body)
    _set_refresh_cookie(response, tokens)
    return _auth_response(tokens)


@router.get(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={403: {"description": "Missing or invalid refresh cookie", "model": ErrorResponse}},
    summary="Exchange the refresh cookie for a new access token",
)
async def refresh(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> AccessTokenResponse:
    _, access_token = await auth_service.refresh(
        db, request.cookies.get(settings.refresh_cookie_name)
    )
    return AccessTokenResponse(access_token=access_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={204: {"description": "No session cookie was present"}},
    summary="Clear the refresh cookie",
)
async def logout(request: Request):
    if settings.refresh_cookie_name not in request.cookies:
        return Response(status_code=204)
    response = Response(
        content=MessageResponse(message="Cookie cleared.").model_dump_json(),
        media_type="application/json",
    )
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none" if settings.cookie_secure else "lax",
    )
    return response


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={404: {"description": "Unknown email", "model": ErrorResponse}},
    summary="Email a password reset link",
)
async def request_password_reset(
    body: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Store a reset token and email the link.

    The email goes out after the response so SMTP retries never hold the
    request open.
    """
    user, token = await auth_service.request_password_reset(db, body.email)
    background_tasks.add_task(email_service.send_password_reset, user.email, str(user.id), token)
    return MessageResponse(message="Password reset link sent to your email account.")


@router.post(
    "/{user_id}/reset-password/{token}",
    response_model=MessageResponse,
    responses={400: {"description": "Invalid or expired link", "model": ErrorResponse}},
    summary="Set a new password from a reset link",
)
async def reset_password(
    user_id: UUID,
    token: str,
    body: NewPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.reset_password(db, user_id, token, body.password)
    return MessageResponse(message="Password reset successfully.")
