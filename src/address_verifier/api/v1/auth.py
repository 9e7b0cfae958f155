"""Authentication endpoints.

POST /signup, POST /login, POST /logout (form posts answered with 303
redirects), GET /api/auth/me, GET /api/health.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from address_verifier.core.config import Settings
from address_verifier.core.dependencies import (
    get_app_settings,
    get_async_session,
    get_current_user_session,
    get_session_manager,
    get_session_token,
    require_user_session,
)
from address_verifier.lib.verifier import messages
from address_verifier.schemas.auth import (
    AuthFormData,
    AuthFormResponse,
    LoginRequest,
    SignupRequest,
    UserSession,
)
from address_verifier.schemas.common import FormErrors, flatten_validation_error
from address_verifier.services import auth_service
from address_verifier.services.session_service import SessionManager

ALREADY_LOGGED_IN_MESSAGE = "Already logged in"
LOGOUT_FAILED_MESSAGE = "Failed to log out"

form_router = APIRouter(tags=["auth"])
router = APIRouter(tags=["auth"])


def _form_error(
    status_code: int,
    *,
    name: str | None = None,
    email: str | None = None,
    errors: FormErrors | None = None,
    message: str | None = None,
) -> JSONResponse:
    """Build a failed form response echoing the submitted name and email."""
    if errors is None:
        errors = FormErrors(form_errors=[message] if message else [])
    body = AuthFormResponse(data=AuthFormData(name=name, email=email), error=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@form_router.post("/signup", response_model=None)
async def signup(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    name: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    password_confirm: Annotated[str | None, Form(alias="passwordConfirm")] = None,
) -> RedirectResponse | JSONResponse:
    """Create an account, start a session and redirect home."""
    try:
        form = SignupRequest.model_validate(
            {"name": name, "email": email, "password": password, "passwordConfirm": password_confirm}
        )
    except ValidationError as e:
        return _form_error(400, name=name, email=email, errors=flatten_validation_error(e))

    try:
        user = await auth_service.create_user(session, form, hash_rounds=settings.password_hash_rounds)
    except ValueError as e:
        return _form_error(400, name=name, email=email, message=str(e))
    except SQLAlchemyError:
        logger.exception("Signup failed")
        return _form_error(500, name=name, email=email, message=messages.SERVER_ERROR)

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    try:
        await manager.create_session(UserSession(id=str(user.id), name=user.name), response)
    except RedisError:
        logger.exception("Failed to create session after signup")
        return _form_error(500, name=name, email=email, message=messages.SERVER_ERROR)
    logger.info(f"Created user {user.id}")
    return response


@form_router.post("/login", response_model=None)
async def login(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    current_user: Annotated[UserSession | None, Depends(get_current_user_session)],
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
) -> RedirectResponse | JSONResponse:
    """Authenticate by email and password, start a session and redirect home."""
    if current_user is not None:
        return _form_error(400, email=email, message=ALREADY_LOGGED_IN_MESSAGE)

    try:
        form = LoginRequest.model_validate({"email": email, "password": password})
    except ValidationError as e:
        return _form_error(400, email=email, errors=flatten_validation_error(e))

    try:
        user = await auth_service.authenticate_user(session, form.email, form.password)
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        return _form_error(500, email=email, message=messages.SERVER_ERROR)
    if user is None:
        return _form_error(400, email=email, message=auth_service.INVALID_CREDENTIALS_MESSAGE)

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    try:
        await manager.create_session(UserSession(id=str(user.id), name=user.name), response)
    except RedisError:
        logger.exception("Failed to create session at login")
        return _form_error(500, email=email, message=messages.SERVER_ERROR)
    return response


@form_router.post("/logout", response_model=None)
async def logout(
    token: Annotated[str | None, Depends(get_session_token)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> RedirectResponse | JSONResponse:
    """Revoke the current session and redirect to the login page."""
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    try:
        await manager.revoke_session(token, response)
    except RedisError:
        logger.exception("Failed to revoke session")
        return JSONResponse(status_code=500, content={"error": LOGOUT_FAILED_MESSAGE})
    return response


@router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@router.get("/auth/me", response_model=UserSession)
async def get_me(
    current_user: Annotated[UserSession, Depends(require_user_session)],
) -> UserSession:
    """Return the signed-in user's session identity."""
    return current_user
