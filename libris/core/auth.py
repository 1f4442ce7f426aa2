#!/usr/bin/env python

"""
    Access gate for Libris: resolves who is calling from a signed session
    token and enforces member/admin roles.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from dataclasses import dataclass
from typing import Optional
from fastapi import Request
from itsdangerous import URLSafeTimedSerializer, BadSignature
from werkzeug.security import generate_password_hash, check_password_hash
from libris.configs import SEED, SESSION_TTL
from libris.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

SERIALIZER = None  # Will be initialized lazily
SESSION_COOKIE = "session"


@dataclass(frozen=True)
class AuthContext:
    id: Optional[int] = None
    is_admin: bool = False

    @classmethod
    def guest(cls):
        return cls()

    @property
    def is_guest(self):
        return self.id is None


def _get_serializer():
    """Get or initialize the SERIALIZER lazily."""
    global SERIALIZER
    if SERIALIZER is None:
        SERIALIZER = URLSafeTimedSerializer(SEED, salt="auth-session")
    return SERIALIZER


def create_session_token(user_id: int, is_admin: bool = False) -> str:
    """Returns a signed session token carrying the caller's identity."""
    return _get_serializer().dumps({"id": user_id, "is_admin": bool(is_admin)})


def verify_session_token(token: Optional[str]) -> AuthContext:
    """Verifies a session token; anything missing, tampered or expired
    resolves to the guest identity.
    """
    if not token:
        return AuthContext.guest()
    try:
        data = _get_serializer().loads(token, max_age=SESSION_TTL)
    except BadSignature:
        logger.info("Rejected session token with a bad signature or expired age")
        return AuthContext.guest()
    if not isinstance(data, dict) or not isinstance(data.get("id"), int):
        return AuthContext.guest()
    return AuthContext(id=data["id"], is_admin=bool(data.get("is_admin")))


def identify(request: Request) -> AuthContext:
    """FastAPI dependency: Bearer token first, then the session cookie."""
    token = None
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
    if not token:
        token = request.cookies.get(SESSION_COOKIE)
    return verify_session_token(token)


def require_member(ctx: AuthContext, action: str = "borrow books") -> AuthContext:
    if ctx is None or ctx.is_guest:
        raise ForbiddenError(f"Only registered members can {action}.")
    return ctx


def require_admin(ctx: AuthContext) -> AuthContext:
    if ctx is None or ctx.is_guest or not ctx.is_admin:
        raise ForbiddenError("Admin access required.")
    return ctx


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def requires_member(action: str = "use this service"):
    """Dependency factory rejecting guests before the request body is
    even looked at.
    """
    def dependency(request: Request) -> AuthContext:
        return require_member(identify(request), action)
    return dependency


def admin_identity(request: Request) -> AuthContext:
    return require_admin(identify(request))
