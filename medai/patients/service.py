# -*- coding: utf-8 -*-
"""Patient profiles — ownership-gated operations and the health-data prediction flow."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Tuple

from ..app_db import AppDatabase
from ..auth.security import ensure_owner, is_admin
from ..errors import NotFound
from ..prediction import FeatureVector, PredictionResult, RiskPredictionClient, compute_bmi
from ..validation import drop_nulls, merge_for_update, validate_payload
from .models import CvdSnapshot, HealthDataRequest, PatientProfile, PatientProfileRequest
from .storage import (
    append_snapshot,
    create_profile,
    delete_profile,
    get_profile,
    get_profile_owner,
    list_profiles,
    list_snapshots,
    update_profile,
)

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = set(PatientProfileRequest.model_fields)


def require_patient_access(db: AppDatabase, user: Dict[str, Any], patient_id: str, action: str) -> str:
    """Resolve the profile's owner and check the caller may act on it. Returns the owner id."""
    owner_id = get_profile_owner(db, patient_id)
    if owner_id is None:
        raise NotFound(f"Patient profile not found with id of {patient_id}")
    ensure_owner(user, owner_id, action)
    return owner_id


def create(db: AppDatabase, user: Dict[str, Any], body: Mapping[str, Any]) -> PatientProfile:
    request = validate_payload(PatientProfileRequest, drop_nulls(body))
    return create_profile(db, user_id=user["id"], request=request)


def list_for_user(db: AppDatabase, user: Dict[str, Any]) -> List[PatientProfile]:
    return list_profiles(db, user_id=None if is_admin(user) else user["id"])


def get(db: AppDatabase, user: Dict[str, Any], patient_id: str) -> PatientProfile:
    require_patient_access(db, user, patient_id, "view this patient profile")
    profile = get_profile(db, patient_id)
    if profile is None:
        raise NotFound(f"Patient profile not found with id of {patient_id}")
    return profile


def update(db: AppDatabase, user: Dict[str, Any], patient_id: str, body: Mapping[str, Any]) -> PatientProfile:
    current = get(db, user, patient_id)
    stored = current.model_dump(mode="json", include=_EDITABLE_FIELDS)
    merged = merge_for_update(stored, body)
    request = validate_payload(PatientProfileRequest, drop_nulls(merged))
    updated = update_profile(db, patient_id, request)
    if updated is None:
        raise NotFound(f"Patient profile not found with id of {patient_id}")
    return updated


def delete(db: AppDatabase, user: Dict[str, Any], patient_id: str) -> None:
    require_patient_access(db, user, patient_id, "delete this patient profile")
    if not delete_profile(db, patient_id):
        raise NotFound(f"Patient profile not found with id of {patient_id}")


def record_health_data(
    db: AppDatabase,
    client: RiskPredictionClient,
    user: Dict[str, Any],
    patient_id: str,
    body: Mapping[str, Any],
) -> Tuple[PredictionResult, CvdSnapshot]:
    """Validate vitals, get a CVD prediction, then append one snapshot.

    The snapshot is written only after the prediction succeeds, so a failed call leaves
    the patient's history untouched.
    """
    require_patient_access(db, user, patient_id, "record data for this patient profile")
    request = validate_payload(HealthDataRequest, body)
    features = FeatureVector.from_mapping(request.features())

    prediction = client.predict(features)

    bmi = compute_bmi(features.weight, features.height)
    snapshot = append_snapshot(
        db,
        patient_id=patient_id,
        features=features,
        bmi=bmi,
        prediction=prediction,
        notes=request.notes,
    )
    logger.info("Recorded CVD snapshot %s for patient %s", snapshot.id, patient_id)
    return prediction, snapshot


def list_health_data(db: AppDatabase, user: Dict[str, Any], patient_id: str) -> List[CvdSnapshot]:
    require_patient_access(db, user, patient_id, "view health data for this patient profile")
    return list_snapshots(db, patient_id)
