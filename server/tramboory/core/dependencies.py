"""FastAPI dependencies for authentication, role checks and idempotency keys."""

from datetime import datetime, timedelta
from typing import Callable, Optional

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError

from .config import settings
from .exceptions import AuthenticationError, AuthorizationError, ValidationError
from .roles import UserRole, normalize_role

TOKEN_ALGORITHM = "HS256"


def issue_token(
    user_id: str,
    role: UserRole | str = UserRole.CUSTOMER,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_in: timedelta = timedelta(hours=12),
) -> str:
    """Sign a session token carrying the user's role claim."""
    payload = {
        "sub": user_id,
        "role": role.value if isinstance(role, UserRole) else role,
        "exp": datetime.utcnow() + expires_in,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Validate a session token and return the user it describes.

    Raises:
        AuthenticationError: If the token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=[TOKEN_ALGORITHM],
        )
    except PyJWTError as e:
        raise AuthenticationError(detail="Token inválido o expirado") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError(detail="Token inválido o expirado")

    return {
        "user_id": str(user_id),
        "email": payload.get("email"),
        "name": payload.get("name"),
        "role": normalize_role(payload.get("role")),
    }


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header value."""
    if not authorization:
        return None
    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Formato de autorización inválido")
    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Esquema de autenticación inválido")
    return token


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Returns:
        dict: ``user_id``, ``email``, ``name`` and ``role`` of the caller

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthenticationError()
    return decode_token(token)


async def get_optional_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[dict]:
    """Like ``get_current_user`` but anonymous callers get ``None``."""
    token = extract_bearer_token(authorization)
    if not token:
        return None
    return decode_token(token)


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only lets the given roles through.

    Example:
        ``user: dict = Depends(require_roles(UserRole.ADMIN, UserRole.GERENTE))``
    """
    allowed = set(roles)

    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in allowed:
            raise AuthorizationError(required_roles=sorted(role.value for role in allowed))
        return user

    return dependency


async def get_idempotency_key(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
) -> Optional[str]:
    """
    Extract and validate an optional idempotency key from request headers.

    Raises:
        ValidationError: If the key is longer than 255 characters or blank
    """
    if idempotency_key is None:
        return None
    key = idempotency_key.strip()
    if not key or len(key) > 255:
        raise ValidationError(detail="La llave de idempotencia debe tener entre 1 y 255 caracteres")
    return key


CurrentUser = Depends(get_current_user)
OptionalUser = Depends(get_optional_user)
IdempotencyKey = Depends(get_idempotency_key)
