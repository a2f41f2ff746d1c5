# -*- coding: utf-8 -*-
"""Medications — DB storage helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..app_db import AppDatabase, utc_now
from .models import Medication, MedicationRequest


def _columns(request: MedicationRequest) -> Dict[str, Any]:
    data = request.model_dump(mode="json")
    return {
        "name": data["name"],
        "dosage": data["dosage"],
        "frequency": data["frequency"],
        "instructions": data["instructions"],
        "start_date": data["start_date"],
        "end_date": data["end_date"],
        "status": data["status"],
    }


def create_medication(db: AppDatabase, *, patient_id: str, request: MedicationRequest) -> Medication:
    values = _columns(request)
    values.update({"id": str(uuid4()), "patient_id": patient_id, "created_at": utc_now()})
    with db.transaction() as conn:
        conn.execute(
            """
            INSERT INTO medications (id, patient_id, name, dosage, frequency, instructions,
                                     start_date, end_date, status, created_at)
            VALUES (:id, :patient_id, :name, :dosage, :frequency, :instructions,
                    :start_date, :end_date, :status, :created_at)
            """,
            values,
        )
    return Medication.model_validate(values)


def get_medication(db: AppDatabase, medication_id: str) -> Optional[Medication]:
    with db.transaction() as conn:
        row = conn.execute("SELECT * FROM medications WHERE id = ?", (medication_id,)).fetchone()
        return Medication.model_validate(dict(row)) if row else None


def list_medications(db: AppDatabase, *, patient_id: Optional[str] = None, owner_id: Optional[str] = None) -> List[Medication]:
    sql = "SELECT m.* FROM medications m JOIN patient_profiles p ON p.id = m.patient_id WHERE 1 = 1"
    params: list[Any] = []
    if patient_id is not None:
        sql += " AND m.patient_id = ?"
        params.append(patient_id)
    if owner_id is not None:
        sql += " AND p.user_id = ?"
        params.append(owner_id)
    sql += " ORDER BY m.created_at ASC, m.rowid ASC"
    with db.transaction() as conn:
        rows = conn.execute(sql, tuple(params)).fetchall()
        return [Medication.model_validate(dict(r)) for r in rows]


def update_medication(db: AppDatabase, medication_id: str, request: MedicationRequest) -> Optional[Medication]:
    values = _columns(request)
    values["id"] = medication_id
    with db.transaction() as conn:
        cur = conn.execute(
            """
            UPDATE medications
            SET name = :name, dosage = :dosage, frequency = :frequency, instructions = :instructions,
                start_date = :start_date, end_date = :end_date, status = :status
            WHERE id = :id
            """,
            values,
        )
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM medications WHERE id = ?", (medication_id,)).fetchone()
        return Medication.model_validate(dict(row))


def delete_medication(db: AppDatabase, medication_id: str) -> bool:
    with db.transaction() as conn:
        cur = conn.execute("DELETE FROM medications WHERE id = ?", (medication_id,))
        return cur.rowcount > 0
