# -*- coding: utf-8 -*-
"""Health records — DB storage helpers.

Lists come back most recent `recorded_at` first; callers that need "the latest
reading" take the first row.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from ..app_db import AppDatabase, format_timestamp, utc_now
from .models import BloodPressureRecord, FreeFormRecord, HealthRecord, HealthRecordType, MeasurementRecord

RecordBody = Union[BloodPressureRecord, MeasurementRecord, FreeFormRecord]

_ORDER = " ORDER BY r.recorded_at DESC, r.created_at DESC, r.rowid DESC"


def _columns(body: RecordBody) -> Dict[str, Any]:
    return {
        "type": body.type,
        "value": getattr(body, "value", None),
        "unit": getattr(body, "unit", None),
        "systolic": getattr(body, "systolic", None),
        "diastolic": getattr(body, "diastolic", None),
        "notes": body.notes,
        "recorded_at": format_timestamp(body.recorded_at),
    }


def create_record(db: AppDatabase, *, patient_id: str, body: RecordBody) -> HealthRecord:
    values = _columns(body)
    values.update({"id": str(uuid4()), "patient_id": patient_id, "created_at": utc_now()})
    with db.transaction() as conn:
        conn.execute(
            """
            INSERT INTO health_records (id, patient_id, type, value, unit, systolic, diastolic,
                                        notes, recorded_at, created_at)
            VALUES (:id, :patient_id, :type, :value, :unit, :systolic, :diastolic,
                    :notes, :recorded_at, :created_at)
            """,
            values,
        )
    return HealthRecord.model_validate(values)


def get_record(db: AppDatabase, record_id: str) -> Optional[HealthRecord]:
    with db.transaction() as conn:
        row = conn.execute("SELECT * FROM health_records WHERE id = ?", (record_id,)).fetchone()
        return HealthRecord.model_validate(dict(row)) if row else None


def list_records(
    db: AppDatabase,
    *,
    patient_id: Optional[str] = None,
    owner_id: Optional[str] = None,
    record_type: Optional[HealthRecordType] = None,
    limit: Optional[int] = None,
) -> List[HealthRecord]:
    sql = "SELECT r.* FROM health_records r JOIN patient_profiles p ON p.id = r.patient_id WHERE 1 = 1"
    params: list[Any] = []
    if patient_id is not None:
        sql += " AND r.patient_id = ?"
        params.append(patient_id)
    if owner_id is not None:
        sql += " AND p.user_id = ?"
        params.append(owner_id)
    if record_type is not None:
        sql += " AND r.type = ?"
        params.append(record_type.value)
    sql += _ORDER
    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))
    with db.transaction() as conn:
        rows = conn.execute(sql, tuple(params)).fetchall()
        return [HealthRecord.model_validate(dict(r)) for r in rows]


def latest_record(db: AppDatabase, patient_id: str, record_type: HealthRecordType) -> Optional[HealthRecord]:
    items = list_records(db, patient_id=patient_id, record_type=record_type, limit=1)
    return items[0] if items else None


def update_record(db: AppDatabase, record_id: str, body: RecordBody) -> Optional[HealthRecord]:
    values = _columns(body)
    values["id"] = record_id
    with db.transaction() as conn:
        cur = conn.execute(
            """
            UPDATE health_records
            SET type = :type, value = :value, unit = :unit, systolic = :systolic,
                diastolic = :diastolic, notes = :notes, recorded_at = :recorded_at
            WHERE id = :id
            """,
            values,
        )
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM health_records WHERE id = ?", (record_id,)).fetchone()
        return HealthRecord.model_validate(dict(row))


def delete_record(db: AppDatabase, record_id: str) -> bool:
    with db.transaction() as conn:
        cur = conn.execute("DELETE FROM health_records WHERE id = ?", (record_id,))
        return cur.rowcount > 0
