# -*- coding: utf-8 -*-
"""Auth — password hashing + JWT + the access guard dependencies."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request

from ..app_db import AppDatabase, get_db
from ..config import Settings
from ..errors import Forbidden, Unauthenticated
from .models import Role
from .storage import get_user_by_id

# Password hashing (stdlib pbkdf2_hmac).
_PBKDF2_ALG = "sha256"
_PBKDF2_ITERATIONS = 200_000


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac(_PBKDF2_ALG, password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"pbkdf2_{_PBKDF2_ALG}${_PBKDF2_ITERATIONS}${_b64url_encode(salt)}${_b64url_encode(dk)}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iter_s, salt_b64, dk_b64 = password_hash.split("$", 3)
        if not scheme.startswith("pbkdf2_"):
            return False
        alg = scheme.split("_", 1)[1]
        salt = _b64url_decode(salt_b64)
        expected = _b64url_decode(dk_b64)
        actual = hashlib.pbkdf2_hmac(alg, password.encode("utf-8"), salt, int(iter_s))
        return hmac.compare_digest(actual, expected)
    except (ValueError, TypeError):
        return False


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(settings: Settings, *, user_id: str, email: str, ttl: Optional[timedelta] = None) -> str:
    now = _utc_now()
    exp = now + (ttl if ttl is not None else timedelta(days=int(settings.token_ttl_days)))
    payload = {
        "sub": user_id,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return _jwt_encode(payload, settings.jwt_secret)


def decode_token(settings: Settings, token: str) -> Dict[str, Any]:
    try:
        payload = _jwt_decode(token, settings.jwt_secret)
    except (ValueError, UnicodeError) as exc:
        raise Unauthenticated("Not authorized, token failed") from exc
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp < int(_utc_now().timestamp()):
        raise Unauthenticated("Token expired")
    return payload


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode((data + pad).encode("ascii"))


def _jwt_encode(payload: Dict[str, Any], secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{_b64url_encode(sig)}"


def _jwt_decode(token: str, secret: str) -> Dict[str, Any]:
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("invalid token")
    header_b64, payload_b64, sig_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    expected_sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    if not hmac.compare_digest(expected_sig, _b64url_decode(sig_b64)):
        raise ValueError("bad signature")
    payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("bad payload")
    return payload


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1].strip()
        return token or None
    return None


def get_current_user(
    request: Request,
    db: AppDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Verify the bearer token and resolve the principal. Runs on every request."""
    token = get_token_from_request(request)
    if not token:
        raise Unauthenticated()

    payload = decode_token(settings, token)
    user_id = str(payload.get("sub") or "")
    if not user_id:
        raise Unauthenticated("Not authorized, token failed")

    user_row = get_user_by_id(db, user_id)
    if not user_row:
        raise Unauthenticated("No user found with this ID")
    request.state.user = user_row
    return user_row


def authorize(*roles: Role) -> Callable[..., Dict[str, Any]]:
    allowed = {Role(r).value for r in roles}

    def _check(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in allowed:
            raise Forbidden(f"User role {user.get('role')} is not authorized to access this route")
        return user

    return _check


def is_admin(user: Dict[str, Any]) -> bool:
    return user.get("role") == Role.admin.value


def ensure_owner(user: Dict[str, Any], owner_id: str, action: str) -> None:
    if owner_id != user["id"] and not is_admin(user):
        raise Forbidden(f"User {user['id']} is not authorized to {action}")
