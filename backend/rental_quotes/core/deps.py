"""
Dependency injection for caller identity and permissions
Project: PPP Rental (Wynajem sprzętu)

User authentication happens in the gateway in front of this service; it
forwards the authenticated identity as headers. This module turns those
headers into a Caller and enforces role gates. Public endpoints are gated
by API keys configured in settings.
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header

from rental_quotes.core.config import Settings, get_settings
from rental_quotes.core.exceptions import AuthenticationError, AuthorizationError

ROLES = ("admin", "kierownik", "employee")


@dataclass(frozen=True)
class Caller:
    """Authenticated user as reported by the gateway."""

    user_id: str
    role: Optional[str]
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ApiClient:
    """Caller of the public API, identified by its key."""

    key: str
    permissions: tuple[str, ...]


async def get_current_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> Caller:
    """
    Dependency returning the current caller.

    Raises:
        AuthenticationError: if the gateway did not forward a user id
    """
    if not x_user_id:
        raise AuthenticationError("User identity not provided")

    role = x_user_role.strip().lower() if x_user_role else None
    if role not in ROLES:
        role = None

    return Caller(user_id=x_user_id, role=role, display_name=x_user_name)


def require_role(*allowed_roles: str):
    """
    Factory for a dependency that checks the caller's role.

    Example:
        @router.post("/equipment")
        async def create(caller: Caller = Depends(require_role("admin", "kierownik"))):
            ...
    """
    async def role_checker(
        current_caller: Annotated[Caller, Depends(get_current_caller)]
    ) -> Caller:
        if current_caller.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Role required: {', '.join(allowed_roles)}"
            )
        return current_caller

    return role_checker


def require_api_key(*permissions: str):
    """
    Factory for a dependency that validates the public API key.

    The key is read from X-API-Key or from an "Authorization: Bearer" header.
    The key must grant at least one of the requested permissions, or "*".
    """
    async def api_key_checker(
        x_api_key: Optional[str] = Header(None),
        authorization: Optional[str] = Header(None),
        settings: Settings = Depends(get_settings),
    ) -> ApiClient:
        api_key = x_api_key
        if not api_key and authorization:
            api_key = authorization.replace("Bearer ", "", 1).strip()

        if not api_key:
            raise AuthenticationError(
                "API key required. Provide it in X-API-Key header or Authorization Bearer token",
                error_code="API_KEY_REQUIRED",
            )

        key_permissions = settings.public_api_keys.get(api_key)
        if key_permissions is None:
            raise AuthenticationError("The provided API key is not valid", error_code="API_KEY_INVALID")

        if permissions and not any(
            p in key_permissions or "*" in key_permissions for p in permissions
        ):
            raise AuthorizationError(
                f"API key does not have required permissions: {', '.join(permissions)}"
            )

        return ApiClient(key=api_key, permissions=tuple(key_permissions))

    return api_key_checker


# Type aliases for common gates
CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
AdminCaller = Annotated[Caller, Depends(require_role("admin"))]
CatalogManager = Annotated[Caller, Depends(require_role("admin", "kierownik"))]
QuoteStaff = Annotated[Caller, Depends(require_role("admin", "employee"))]


__all__ = [
    "Caller",
    "ApiClient",
    "get_current_caller",
    "require_role",
    "require_api_key",
    "CurrentCaller",
    "AdminCaller",
    "CatalogManager",
    "QuoteStaff",
]
