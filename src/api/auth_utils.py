import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import jwt

from src.domain.entities import Principal

logger = logging.getLogger(__name__)

SECRET_KEY = os.environ.get("FILES_SECRET_KEY", "dev-secret-unsafe")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
DEFAULT_CLIENT_ID = "microservices-client"
DEFAULT_ROLE_ALIASES = {"teacher": "instructor", "client": "member"}


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
    *,
    secret_key: str | None = None,
    algorithm: str = ALGORITHM,
) -> str:
    """
    Create a JWT access token.

    Production tokens come from the identity provider; this signs tokens for
    tests and local development.

    Args:
        data: Claims to encode in the token
        expires_delta: Optional custom expiration delta
        now_utc: Current UTC time (for testing/determinism). Defaults to datetime.now(UTC).
    """
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(UTC)
    expire = current_time + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({"exp": expire})
    encoded_jwt: str = jwt.encode(to_encode, secret_key or SECRET_KEY, algorithm=algorithm)
    return encoded_jwt


def decode_access_token(
    token: str,
    *,
    secret_key: str | None = None,
    algorithm: str = ALGORITHM,
) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret_key or SECRET_KEY, algorithms=[algorithm])
        return cast(dict[str, Any], payload)
    except jwt.JWTError:
        return None


def _role_list(container: Any) -> list[str]:
    if not isinstance(container, Mapping):
        return []
    roles = container.get("roles")
    if not isinstance(roles, list):
        return []
    return [r for r in roles if isinstance(r, str)]


def extract_roles(claims: Mapping[str, Any], client_id: str = DEFAULT_CLIENT_ID) -> list[str]:
    """
    Collect role labels from token claims.

    realm_access.roles and resource_access.<client_id>.roles are merged; the
    top-level `roles` claim is used only when both are empty.
    """
    roles = _role_list(claims.get("realm_access"))
    resource_access = claims.get("resource_access")
    if isinstance(resource_access, Mapping):
        roles.extend(_role_list(resource_access.get(client_id)))

    if roles:
        return roles

    top_level = claims.get("roles")
    if isinstance(top_level, list):
        return [r for r in top_level if isinstance(r, str)]
    return []


def normalize_roles(roles: list[str], aliases: Mapping[str, str] | None = None) -> frozenset[str]:
    """Lower-case labels and map token vocabulary onto internal roles."""
    table = DEFAULT_ROLE_ALIASES if aliases is None else aliases
    normalized = set()
    for role in roles:
        label = role.strip().lower()
        if label:
            normalized.add(table.get(label, label))
    return frozenset(normalized)


def principal_from_claims(
    claims: Mapping[str, Any],
    *,
    client_id: str = DEFAULT_CLIENT_ID,
    aliases: Mapping[str, str] | None = None,
) -> Principal | None:
    """Build a Principal from decoded claims, or None when `sub` is missing."""
    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    roles = normalize_roles(extract_roles(claims, client_id), aliases)
    if not roles:
        logger.warning("Token for %s carries no roles", subject)
    return Principal(subject_id=subject, roles=roles)
