# -*- coding: utf-8 -*-
"""Health records — ownership-gated operations.

A record carries only its patient_id; every access re-checks ownership through the
parent profile.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..app_db import AppDatabase
from ..auth.security import is_admin
from ..errors import NotFound, ValidationFailed
from ..patients.service import require_patient_access
from ..prediction import FeatureVector, RiskPredictionClient
from ..validation import drop_nulls, merge_for_update, patient_id_from, validate_payload
from .models import CvdRiskRequest, HealthRecord, HealthRecordType, health_record_body
from .storage import create_record, delete_record, get_record, latest_record, list_records, update_record

logger = logging.getLogger(__name__)

_RECORD_FIELDS = ("type", "value", "unit", "systolic", "diastolic", "notes", "recorded_at")


def parse_type(raw: str) -> HealthRecordType:
    try:
        return HealthRecordType(str(raw).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in HealthRecordType)
        raise ValidationFailed([{"field": "type", "message": f"Invalid type. Expected one of: {allowed}."}]) from None


def _validated_body(data: Mapping[str, Any]):
    cleaned = drop_nulls(data)
    if isinstance(cleaned.get("type"), str):
        cleaned["type"] = cleaned["type"].strip().lower()
    return validate_payload(health_record_body, cleaned, tagged=True)


def create(db: AppDatabase, user: Dict[str, Any], body: Mapping[str, Any], *, patient_id: Optional[str] = None) -> HealthRecord:
    fields = {k: v for k, v in body.items() if k != "patient_id"}
    target = patient_id_from(body, patient_id, validate_rest=lambda: _validated_body(fields))
    require_patient_access(db, user, target, "add health records to this patient profile")
    record = _validated_body(fields)
    return create_record(db, patient_id=target, body=record)


def list_for_patient(
    db: AppDatabase,
    user: Dict[str, Any],
    patient_id: str,
    record_type: Optional[str] = None,
) -> List[HealthRecord]:
    require_patient_access(db, user, patient_id, "view health records for this patient profile")
    kind = parse_type(record_type) if record_type is not None else None
    return list_records(db, patient_id=patient_id, record_type=kind)


def list_for_user(db: AppDatabase, user: Dict[str, Any], record_type: Optional[str] = None) -> List[HealthRecord]:
    kind = parse_type(record_type) if record_type is not None else None
    return list_records(db, owner_id=None if is_admin(user) else user["id"], record_type=kind)


def _resolve(db: AppDatabase, user: Dict[str, Any], record_id: str, action: str) -> HealthRecord:
    record = get_record(db, record_id)
    if record is None:
        raise NotFound(f"Health record not found with id of {record_id}")
    require_patient_access(db, user, record.patient_id, action)
    return record


def get(db: AppDatabase, user: Dict[str, Any], record_id: str) -> HealthRecord:
    return _resolve(db, user, record_id, "view this health record")


def update(db: AppDatabase, user: Dict[str, Any], record_id: str, body: Mapping[str, Any]) -> HealthRecord:
    current = _resolve(db, user, record_id, "update this health record")
    stored = current.model_dump(mode="json", include=set(_RECORD_FIELDS))
    record = _validated_body(merge_for_update(stored, body))
    updated = update_record(db, record_id, record)
    if updated is None:
        raise NotFound(f"Health record not found with id of {record_id}")
    return updated


def delete(db: AppDatabase, user: Dict[str, Any], record_id: str) -> None:
    _resolve(db, user, record_id, "delete this health record")
    if not delete_record(db, record_id):
        raise NotFound(f"Health record not found with id of {record_id}")


def predict_cvd_risk(
    db: AppDatabase,
    client: RiskPredictionClient,
    user: Dict[str, Any],
    body: Mapping[str, Any],
    *,
    patient_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Combine the latest stored blood pressure with body-supplied features and ask for a prediction."""
    data = drop_nulls(body)
    target = patient_id_from(body, patient_id, validate_rest=lambda: validate_payload(CvdRiskRequest, data))
    require_patient_access(db, user, target, "access this patient profile's data")
    request = validate_payload(CvdRiskRequest, data)

    latest_bp = latest_record(db, target, HealthRecordType.blood_pressure)
    if latest_bp is None:
        raise NotFound(f"No blood pressure records found for patient {target}.")

    features = FeatureVector.from_mapping(
        {
            **request.model_dump(exclude={"patient_id"}),
            "ap_hi": latest_bp.systolic,
            "ap_lo": latest_bp.diastolic,
        }
    )
    prediction = client.predict(features)
    logger.info("CVD risk for patient %s from blood pressure record %s", target, latest_bp.id)
    return {
        "patient_id": target,
        "latest_blood_pressure": latest_bp,
        "features": features.to_payload(),
        "prediction": prediction.as_response(),
    }
