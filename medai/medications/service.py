# -*- coding: utf-8 -*-
"""Medications — ownership-gated operations.

A profile's `current_medications` is read straight from this table, so creating or
deleting a medication is a single write.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..app_db import AppDatabase
from ..auth.security import is_admin
from ..errors import NotFound
from ..patients.service import require_patient_access
from ..validation import drop_nulls, merge_for_update, patient_id_from, validate_payload
from .models import Medication, MedicationRequest
from .storage import create_medication, delete_medication, get_medication, list_medications, update_medication

_EDITABLE_FIELDS = set(MedicationRequest.model_fields)


def create(db: AppDatabase, user: Dict[str, Any], body: Mapping[str, Any], *, patient_id: Optional[str] = None) -> Medication:
    payload = {k: v for k, v in drop_nulls(body).items() if k != "patient_id"}
    target = patient_id_from(body, patient_id, validate_rest=lambda: validate_payload(MedicationRequest, payload))
    require_patient_access(db, user, target, "add medication to this patient profile")
    request = validate_payload(MedicationRequest, payload)
    return create_medication(db, patient_id=target, request=request)


def list_for_patient(db: AppDatabase, user: Dict[str, Any], patient_id: str) -> List[Medication]:
    require_patient_access(db, user, patient_id, "view medications for this patient profile")
    return list_medications(db, patient_id=patient_id)


def list_for_user(db: AppDatabase, user: Dict[str, Any]) -> List[Medication]:
    return list_medications(db, owner_id=None if is_admin(user) else user["id"])


def _resolve(db: AppDatabase, user: Dict[str, Any], medication_id: str, action: str) -> Medication:
    medication = get_medication(db, medication_id)
    if medication is None:
        raise NotFound(f"Medication not found with id of {medication_id}")
    require_patient_access(db, user, medication.patient_id, action)
    return medication


def get(db: AppDatabase, user: Dict[str, Any], medication_id: str) -> Medication:
    return _resolve(db, user, medication_id, "view this medication")


def update(db: AppDatabase, user: Dict[str, Any], medication_id: str, body: Mapping[str, Any]) -> Medication:
    current = _resolve(db, user, medication_id, "update this medication")
    stored = current.model_dump(mode="json", include=_EDITABLE_FIELDS)
    # end_date may be cleared explicitly with null.
    merged = merge_for_update(stored, body)
    request = validate_payload(MedicationRequest, drop_nulls(merged))
    updated = update_medication(db, medication_id, request)
    if updated is None:
        raise NotFound(f"Medication not found with id of {medication_id}")
    return updated


def delete(db: AppDatabase, user: Dict[str, Any], medication_id: str) -> None:
    _resolve(db, user, medication_id, "delete this medication")
    if not delete_medication(db, medication_id):
        raise NotFound(f"Medication not found with id of {medication_id}")
