from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import jwt

from quizhub.core.config import get_settings
from quizhub.core.constants import PERMISSIONS, Action, Role
from quizhub.core.errors import Unauthenticated, Unauthorized
from quizhub.utils.clock import Clock, utcnow

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ("id", "email", "role", "exp")


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    role: Role


def issue_access_token(identity: Identity, ttl: timedelta | None = None, clock: Clock = utcnow) -> str:
    settings = get_settings()
    now = clock()
    expires = now + (ttl if ttl is not None else timedelta(minutes=settings.jwt_access_ttl_min))
    payload: dict[str, Any] = {
        "id": identity.id,
        "email": identity.email,
        "role": identity.role.value,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def resolve_identity(token: str, clock: Clock = utcnow) -> Identity:
    """Verify a signed credential and return the identity it carries.

    The signature is checked by PyJWT; expiry is checked here against
    ``clock`` and must be strictly in the future. Any failure raises
    ``Unauthenticated``; a partially populated identity is never returned.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[ALGORITHM],
            options={"verify_exp": False, "verify_iat": False, "require": list(REQUIRED_CLAIMS)},
        )
    except jwt.PyJWTError as exc:
        raise Unauthenticated("Invalid auth token") from exc

    if payload.get("type", "access") != "access":
        raise Unauthenticated("Invalid token type")
    try:
        exp = int(payload["exp"])
        role = Role(payload["role"])
    except (TypeError, ValueError) as exc:
        raise Unauthenticated("Malformed auth token") from exc
    if exp <= int(clock().timestamp()):
        raise Unauthenticated("Auth token expired")

    subject = str(payload["id"] or "").strip()
    email = str(payload["email"] or "").strip().lower()
    if not subject or not email:
        raise Unauthenticated("Malformed auth token")
    return Identity(id=subject, email=email, role=role)


def authorize(identity: Identity | None, action: Action) -> bool:
    if identity is None:
        return False
    return identity.role in PERMISSIONS.get(action, frozenset())


def require(identity: Identity | None, action: Action) -> Identity:
    if identity is None:
        raise Unauthenticated()
    if not authorize(identity, action):
        raise Unauthorized(extra={"action": action.value, "role": identity.role.value})
    return identity
