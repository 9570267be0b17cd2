"""Admin credentials: password hashing and signed bearer tokens.

Tokens are HS256 JWTs carrying the admin id and email with a fixed
expiry. Verification is stateless; nothing is stored server-side.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from finadmin.db import repo
from finadmin.db.repo import DbSession
from finadmin.errors import AuthError, ConflictError
from finadmin.models.domain import AdminEntity

ALGORITHM = "HS256"

# bcrypt only considers the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Verified admin identity extracted from a token."""

    admin_id: str
    email: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode(
        "utf-8"
    )


def check_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        password.encode("utf-8")[:BCRYPT_MAX_BYTES], hashed_password.encode("utf-8")
    )


def issue_token(
    admin: AdminEntity,
    secret: str,
    expires_minutes: int,
    now: datetime | None = None,
) -> str:
    """Sign a token for an admin.

    Args:
        admin: Authenticated admin.
        secret: HMAC signing secret.
        expires_minutes: Lifetime of the token.
        now: Issue time (defaults to current UTC time).

    Returns:
        Encoded JWT string.
    """
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "id": admin.admin_id,
        "email": admin.email,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def issue_credential(
    session: DbSession,
    email: str,
    password: str,
    secret: str,
    expires_minutes: int,
) -> str:
    """Check an admin's password and sign a token.

    Raises:
        AuthError: reason "not_found" for an unknown email,
            "invalid_password" for a wrong password.
    """
    admin = repo.get_admin_by_email(session, email)
    if admin is None:
        logger.warning(f"Login attempt for unknown admin {email}")
        raise AuthError("Admin not found", reason="not_found")

    if not check_password(password, admin.password_hash):
        logger.warning(f"Invalid password for admin {email}")
        raise AuthError("Invalid password", reason="invalid_password")

    logger.info(f"Admin {email} logged in")
    return issue_token(admin, secret, expires_minutes)


def verify_credential(token: str, secret: str) -> Principal:
    """Verify a token and return its principal.

    Raises:
        AuthError: reason "expired" past the expiry, "invalid" for any
            other decoding or signature problem.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise AuthError("Token expired", reason="expired") from e
    except JWTError as e:
        raise AuthError("Invalid token", reason="invalid") from e

    admin_id = claims.get("id")
    email = claims.get("email")
    if not admin_id or not email:
        raise AuthError("Invalid token", reason="invalid")
    return Principal(admin_id=admin_id, email=email)


def register_admin(session: DbSession, email: str, password: str) -> AdminEntity:
    """Create an admin account.

    Raises:
        ConflictError: If an admin with this email already exists.
    """
    if repo.get_admin_by_email(session, email) is not None:
        raise ConflictError("Admin already exists")

    admin = AdminEntity(
        admin_id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(password),
    )
    repo.create_admin(session, admin)
    logger.info(f"Registered admin {email}")
    return admin
