# ===============================================================================
# STORE ADMIN AUTHENTICATION 🔐
# ===============================================================================
"""
Admin gate for the coupon management API.

The bearer token is an identity provider ID token. It is verified with the
provider's account lookup endpoint and the resulting email must be on the
``ADMIN_ALLOWED_EMAILS`` allowlist. An empty allowlist admits nobody.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.logging import set_request_context
from apps.common.types import Ok, Result, ServiceError, service_error

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://identitytoolkit.googleapis.com/v1/accounts:lookup"
DEFAULT_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class AdminUser:
    email: str
    uid: str | None = None


class IdentityProviderNotConfigured(Exception):
    """Raised when no identity provider API key is configured"""


def get_allowed_admin_emails() -> list[str]:
    configured = getattr(settings, "ADMIN_ALLOWED_EMAILS", []) or []
    if isinstance(configured, str):
        configured = configured.split(",")
    return [email.strip().lower() for email in configured if email and email.strip()]


def get_bearer_token(request: Request) -> str:
    header = str(request.headers.get("Authorization") or "").strip()
    if not header.lower().startswith("bearer "):
        return ""
    return header[7:].strip()


def verify_identity_token(id_token: str) -> AdminUser | None:
    """
    Resolve an ID token to its account. Returns None for unknown or invalid tokens.

    Raises:
        IdentityProviderNotConfigured: no API key in ``settings.IDENTITY_PROVIDER``.
        requests.RequestException: the provider could not be reached.
    """
    token = str(id_token or "").strip()
    if not token:
        return None

    provider = getattr(settings, "IDENTITY_PROVIDER", {}) or {}
    api_key = str(provider.get("API_KEY") or "").strip()
    if not api_key:
        raise IdentityProviderNotConfigured("IDENTITY_PROVIDER['API_KEY'] is not set")

    response = requests.post(
        provider.get("LOOKUP_URL") or DEFAULT_LOOKUP_URL,
        params={"key": api_key},
        json={"idToken": token},
        timeout=provider.get("TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
    )
    if not response.ok:
        return None

    try:
        payload = response.json()
    except ValueError:
        return None

    users = payload.get("users") if isinstance(payload, dict) else None
    account = users[0] if isinstance(users, list) and users else None
    email = str((account or {}).get("email") or "").strip().lower()
    if not email:
        return None
    return AdminUser(email=email, uid=str(account.get("localId") or "").strip() or None)


def get_admin_user(request: Request) -> Result[AdminUser, ServiceError]:
    """401 when the token is missing or invalid, 403 when the account is not allowlisted."""
    try:
        admin = verify_identity_token(get_bearer_token(request))
    except IdentityProviderNotConfigured:
        logger.error("🔥 [Admin Auth] Identity provider API key missing")
        return service_error(500, "Admin authentication is not configured", "identity_provider_not_configured")
    except requests.RequestException as e:
        logger.error(f"🔥 [Admin Auth] Identity provider lookup failed: {e}")
        return service_error(503, "Admin authentication is temporarily unavailable", "identity_provider_unavailable")

    if admin is None:
        return service_error(401, "Admin login required", "admin_login_required")

    if admin.email not in get_allowed_admin_emails():
        logger.warning(f"🚨 [Admin Auth] Rejected non-allowlisted account {admin.email}")
        return service_error(403, "This account is not allowed for admin access", "admin_not_allowed")

    return Ok(admin)


def require_admin_authentication(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    🔒 Decorator for API views restricted to store admins.

    Usage:
        @require_admin_authentication
        def my_admin_view(request, admin):
            return Response({"ok": True})
    """

    def wrapper(request: Request, *args: Any, **kwargs: Any) -> Response:
        result = get_admin_user(request)
        if result.is_err():
            error = result.unwrap_err()
            return Response(error.as_dict(), status=error.status, headers={"Cache-Control": "no-store"})
        admin = result.unwrap()
        set_request_context(user_email=admin.email)
        return view_func(request, admin, *args, **kwargs)

    wrapper.__name__ = view_func.__name__
    wrapper.__doc__ = view_func.__doc__
    return wrapper
