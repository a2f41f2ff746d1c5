# -*- coding: utf-8 -*-
"""Patient profiles — DB storage helpers."""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..app_db import AppDatabase, dump_json, load_json, utc_now
from ..prediction import FeatureVector, PredictionResult
from .models import CvdSnapshot, PatientProfile, PatientProfileRequest


def _columns(request: PatientProfileRequest) -> Dict[str, Any]:
    data = request.model_dump(mode="json")
    return {
        "name": data["name"],
        "date_of_birth": data["date_of_birth"],
        "gender": data["gender"],
        "diagnoses_json": dump_json(data["diagnoses"]),
        "allergies_json": dump_json(data["allergies"]),
        "medical_history": data["medical_history"],
        "last_blood_pressure_json": dump_json(data["last_recorded_blood_pressure"]),
        "last_glucose_json": dump_json(data["last_recorded_glucose"]),
    }


def _snapshot_from_row(row: sqlite3.Row) -> CvdSnapshot:
    data = dict(row)
    data["cvd_prediction_probabilities"] = {
        "low_risk_proba": data.pop("low_risk_proba"),
        "high_risk_proba": data.pop("high_risk_proba"),
    }
    data["cvd_alert_triggered"] = bool(data["cvd_alert_triggered"])
    data.pop("patient_id", None)
    return CvdSnapshot.model_validate(data)


def _medication_ids(conn: sqlite3.Connection, patient_id: str) -> List[str]:
    rows = conn.execute(
        "SELECT id FROM medications WHERE patient_id = ? ORDER BY created_at ASC, rowid ASC",
        (patient_id,),
    ).fetchall()
    return [r["id"] for r in rows]


def _snapshots(conn: sqlite3.Connection, patient_id: str) -> List[CvdSnapshot]:
    rows = conn.execute(
        "SELECT * FROM cvd_snapshots WHERE patient_id = ? ORDER BY rowid ASC",
        (patient_id,),
    ).fetchall()
    return [_snapshot_from_row(r) for r in rows]


def _profile_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> PatientProfile:
    return PatientProfile(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        date_of_birth=row["date_of_birth"],
        gender=row["gender"],
        diagnoses=load_json(row["diagnoses_json"], []),
        allergies=load_json(row["allergies_json"], []),
        current_medications=_medication_ids(conn, row["id"]),
        medical_history=row["medical_history"] or "",
        last_recorded_blood_pressure=load_json(row["last_blood_pressure_json"]),
        last_recorded_glucose=load_json(row["last_glucose_json"]),
        health_records=_snapshots(conn, row["id"]),
        created_at=row["created_at"],
    )


def create_profile(db: AppDatabase, *, user_id: str, request: PatientProfileRequest) -> PatientProfile:
    values = _columns(request)
    values.update({"id": str(uuid4()), "user_id": user_id, "created_at": utc_now()})
    with db.transaction() as conn:
        conn.execute(
            """
            INSERT INTO patient_profiles (id, user_id, name, date_of_birth, gender, diagnoses_json,
                allergies_json, medical_history, last_blood_pressure_json, last_glucose_json, created_at)
            VALUES (:id, :user_id, :name, :date_of_birth, :gender, :diagnoses_json,
                :allergies_json, :medical_history, :last_blood_pressure_json, :last_glucose_json, :created_at)
            """,
            values,
        )
        row = conn.execute("SELECT * FROM patient_profiles WHERE id = ?", (values["id"],)).fetchone()
        return _profile_from_row(conn, row)


def get_profile(db: AppDatabase, patient_id: str) -> Optional[PatientProfile]:
    with db.transaction() as conn:
        row = conn.execute("SELECT * FROM patient_profiles WHERE id = ?", (patient_id,)).fetchone()
        return _profile_from_row(conn, row) if row else None


def get_profile_owner(db: AppDatabase, patient_id: str) -> Optional[str]:
    with db.transaction() as conn:
        row = conn.execute("SELECT user_id FROM patient_profiles WHERE id = ?", (patient_id,)).fetchone()
        return row["user_id"] if row else None


def list_profiles(db: AppDatabase, *, user_id: Optional[str] = None) -> List[PatientProfile]:
    with db.transaction() as conn:
        if user_id is None:
            rows = conn.execute("SELECT * FROM patient_profiles ORDER BY created_at ASC, rowid ASC").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM patient_profiles WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
                (user_id,),
            ).fetchall()
        return [_profile_from_row(conn, r) for r in rows]


def update_profile(db: AppDatabase, patient_id: str, request: PatientProfileRequest) -> Optional[PatientProfile]:
    values = _columns(request)
    values["id"] = patient_id
    with db.transaction() as conn:
        cur = conn.execute(
            """
            UPDATE patient_profiles
            SET name = :name, date_of_birth = :date_of_birth, gender = :gender,
                diagnoses_json = :diagnoses_json, allergies_json = :allergies_json,
                medical_history = :medical_history, last_blood_pressure_json = :last_blood_pressure_json,
                last_glucose_json = :last_glucose_json
            WHERE id = :id
            """,
            values,
        )
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM patient_profiles WHERE id = ?", (patient_id,)).fetchone()
        return _profile_from_row(conn, row)


def delete_profile(db: AppDatabase, patient_id: str) -> bool:
    with db.transaction() as conn:
        cur = conn.execute("DELETE FROM patient_profiles WHERE id = ?", (patient_id,))
        return cur.rowcount > 0


def append_snapshot(
    db: AppDatabase,
    *,
    patient_id: str,
    features: FeatureVector,
    bmi: float,
    prediction: PredictionResult,
    notes: Optional[str],
) -> CvdSnapshot:
    values: Dict[str, Any] = features.to_payload()
    values.update(
        {
            "id": str(uuid4()),
            "patient_id": patient_id,
            "date": utc_now(),
            "bmi": bmi,
            "cvd_prediction_class": prediction.prediction_class,
            "low_risk_proba": prediction.low_risk_proba,
            "high_risk_proba": prediction.high_risk_proba,
            "cvd_alert_triggered": int(prediction.alert_triggered),
            "notes": notes,
        }
    )
    with db.transaction() as conn:
        conn.execute(
            """
            INSERT INTO cvd_snapshots (id, patient_id, date, age, gender, height, weight, ap_hi, ap_lo,
                cholesterol, gluc, smoke, alco, active, bmi, cvd_prediction_class, low_risk_proba,
                high_risk_proba, cvd_alert_triggered, notes)
            VALUES (:id, :patient_id, :date, :age, :gender, :height, :weight, :ap_hi, :ap_lo,
                :cholesterol, :gluc, :smoke, :alco, :active, :bmi, :cvd_prediction_class, :low_risk_proba,
                :high_risk_proba, :cvd_alert_triggered, :notes)
            """,
            values,
        )
        row = conn.execute("SELECT * FROM cvd_snapshots WHERE id = ?", (values["id"],)).fetchone()
        return _snapshot_from_row(row)


def list_snapshots(db: AppDatabase, patient_id: str) -> List[CvdSnapshot]:
    with db.transaction() as conn:
        return _snapshots(conn, patient_id)
