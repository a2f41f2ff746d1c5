# -*- coding: utf-8 -*-
"""Auth — DB storage helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..app_db import AppDatabase, utc_now
from .models import RegisterRequest, Role


def get_user_by_email(db: AppDatabase, email: str) -> Optional[Dict[str, Any]]:
    with db.transaction() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email.lower().strip(),)).fetchone()
        return dict(row) if row else None


def get_user_by_id(db: AppDatabase, user_id: str) -> Optional[Dict[str, Any]]:
    with db.transaction() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None


def create_user(db: AppDatabase, request: RegisterRequest, *, password_hash: str) -> Dict[str, Any]:
    row = {
        "id": str(uuid4()),
        "email": request.email.lower().strip(),
        "password_hash": password_hash,
        "phone_number": request.phone_number,
        "emergency_contact1": request.emergency_contact1,
        "emergency_contact2": request.emergency_contact2,
        "emergency_contact3": request.emergency_contact3,
        "role": Role.user.value,
        "created_at": utc_now(),
    }
    with db.transaction() as conn:
        conn.execute(
            """
            INSERT INTO users (id, email, password_hash, phone_number, emergency_contact1,
                               emergency_contact2, emergency_contact3, role, created_at)
            VALUES (:id, :email, :password_hash, :phone_number, :emergency_contact1,
                    :emergency_contact2, :emergency_contact3, :role, :created_at)
            """,
            row,
        )
    return row


def set_user_role(db: AppDatabase, email: str, role: Role) -> bool:
    with db.transaction() as conn:
        cur = conn.execute("UPDATE users SET role = ? WHERE email = ?", (role.value, email.lower().strip()))
        return cur.rowcount > 0


def list_users(db: AppDatabase) -> List[Dict[str, Any]]:
    with db.transaction() as conn:
        rows = conn.execute("SELECT * FROM users ORDER BY created_at ASC").fetchall()
        return [dict(r) for r in rows]
