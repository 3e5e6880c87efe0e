"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints and the ownership
check every student-side mutation runs before touching an application.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.config import settings
from iskolar.core.database import get_db
from iskolar.core.exceptions import ForbiddenError
from iskolar.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)

STUDENT_ROLE = "student"
ADMIN_ROLE = "admin"


@dataclass
class AuthenticatedUser:
    """User identity populated from JWT claims."""

    id: UUID
    role: str
    email: str = ""


@dataclass(frozen=True)
class StudentActor:
    """
    Authorization context for student operations.

    ``student_profile_id`` is None when the user has not completed a profile
    yet; such a user may browse programs but cannot apply.
    """

    user_id: UUID
    student_profile_id: UUID | None


def ensure_owner(actor: StudentActor, application) -> None:
    """
    Verify the acting student owns the application.

    Raises:
        ForbiddenError: If the profile does not match the application's owner
    """
    if actor.student_profile_id is None or actor.student_profile_id != (
        application.student_profile_id
    ):
        logger.warning(
            f"Ownership check failed: user {actor.user_id} on application {application.id}"
        )
        raise ForbiddenError()


def _is_dev_mode_safe() -> bool:
    """Development bypass requires PYTHON_ENV=development and nothing claiming otherwise."""
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str, default_role: str) -> AuthenticatedUser:
    """
    Validate a JWT and extract the user claims.

    In development mode a bare UUID is accepted as the user id, with
    ``default_role``.

    Raises:
        HTTPException 401: If the token is invalid, expired or not an access token
    """
    if _DEVELOPMENT_MODE:
        try:
            return AuthenticatedUser(id=UUID(token), role=default_role)
        except ValueError:
            pass

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return AuthenticatedUser(
            id=UUID(user_id_str),
            role=payload.get("role", ""),
            email=payload.get("email", ""),
        )
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_student(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> StudentActor:
    """
    FastAPI dependency resolving the caller into a ``StudentActor``.

    Raises:
        HTTPException 401: If the token is missing or invalid
        HTTPException 403: If the user is not a student
    """
    from iskolar.modules.students import repository as students_repository

    user = await _validate_jwt_token(credentials.credentials, default_role=STUDENT_ROLE)

    if user.role != STUDENT_ROLE:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', expected student")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "STUDENT_ACCESS_REQUIRED",
                "message": "Student access is required for this endpoint.",
            },
        )

    profile = await students_repository.get_by_user_id(db, user.id)
    return StudentActor(user_id=user.id, student_profile_id=profile.id if profile else None)


async def get_current_admin_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """
    FastAPI dependency for administrator endpoints.

    Raises:
        HTTPException 401: If the token is missing or invalid
        HTTPException 403: If the user is not an administrator
    """
    user = await _validate_jwt_token(credentials.credentials, default_role=ADMIN_ROLE)

    if user.role != ADMIN_ROLE:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', expected admin")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Administrator access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id}")
    return user


__all__ = [
    "AuthenticatedUser",
    "StudentActor",
    "ensure_owner",
    "get_current_admin_user",
    "get_current_student",
]
