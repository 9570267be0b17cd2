"""Admin authentication endpoints.

POST /admin/login - Exchange email/password for a bearer token
POST /admin/register - Create an admin account
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from finadmin.api.app import get_app_settings, get_db_session
from finadmin.auth.tokens import issue_credential, register_admin
from finadmin.config import Settings
from finadmin.db.repo import DbSession
from finadmin.models.types import Credentials, MessageResponse, TokenResponse

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: Credentials,
    session: DbSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Log an admin in.

    Returns:
        TokenResponse with a signed bearer token.

    Raises:
        AuthError: 404 for an unknown admin, 401 for a wrong password.
    """
    token = issue_credential(
        session,
        credentials.email,
        credentials.password,
        secret=settings.jwt_secret,
        expires_minutes=settings.jwt_expires_minutes,
    )
    return TokenResponse(message="Login successful", token=token)


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(
    credentials: Credentials,
    session: DbSession = Depends(get_db_session),
) -> MessageResponse:
    """Create an admin account.

    Raises:
        ConflictError: 400 if the email is already registered.
    """
    register_admin(session, credentials.email, credentials.password)
    return MessageResponse(message="Admin account created successfully")
