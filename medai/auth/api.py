# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..app_db import AppDatabase, get_db
from ..config import Settings
from ..errors import Conflict, Unauthenticated
from .models import AuthResponse, LoginRequest, RegisterRequest, Role, UserPublic
from .security import authorize, create_access_token, get_current_user, get_settings, hash_password, verify_password
from .storage import create_user, get_user_by_email, list_users

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def user_public(row: Dict[str, Any]) -> UserPublic:
    return UserPublic.model_validate({k: v for k, v in row.items() if k != "password_hash"})


def _token_response(settings: Settings, user: Dict[str, Any]) -> AuthResponse:
    token = create_access_token(settings, user_id=user["id"], email=user["email"])
    return AuthResponse(token=token, user=user_public(user))


@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register(
    request: RegisterRequest,
    db: AppDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if get_user_by_email(db, request.email):
        raise Conflict(f"Duplicate field value entered for email: {request.email}. Please use another value.")
    user = create_user(db, request, password_hash=hash_password(request.password))
    return _token_response(settings, user)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(
    request: LoginRequest,
    db: AppDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = get_user_by_email(db, request.email)
    if not user or not verify_password(request.password, user["password_hash"]):
        raise Unauthenticated("Invalid credentials")
    return _token_response(settings, user)


@router.get("/me", summary="Get current user")
def me(user: dict = Depends(get_current_user)):
    return {"success": True, "data": user_public(user)}


@router.get("/users", summary="List all users (admin)")
def users(_: dict = Depends(authorize(Role.admin)), db: AppDatabase = Depends(get_db)):
    items = [user_public(row) for row in list_users(db)]
    return {"success": True, "count": len(items), "data": items}
