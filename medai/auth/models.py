# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    user = "user"
    admin = "admin"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6, max_length=128)
    phone_number: Optional[str] = Field(None, max_length=32)
    emergency_contact1: Optional[str] = Field(None, max_length=32)
    emergency_contact2: Optional[str] = Field(None, max_length=32)
    emergency_contact3: Optional[str] = Field(None, max_length=32)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        value = value.lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Please add a valid email.")
        return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class UserPublic(BaseModel):
    id: str
    email: str
    phone_number: Optional[str] = None
    emergency_contact1: Optional[str] = None
    emergency_contact2: Optional[str] = None
    emergency_contact3: Optional[str] = None
    role: Role = Role.user
    created_at: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserPublic
