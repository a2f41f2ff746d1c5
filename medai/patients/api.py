# -*- coding: utf-8 -*-
"""Patient profiles — API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..app_db import AppDatabase, get_db
from ..auth.security import get_current_user
from ..prediction import RiskPredictionClient, get_prediction_client
from . import service

router = APIRouter(prefix="/api/patients", tags=["Patients"])


@router.post("", status_code=201, summary="Create a patient profile")
def create_patient(
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.create(db, user, body)}


@router.get("", summary="List the caller's patient profiles")
def list_patients(user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_user(db, user)
    return {"success": True, "count": len(items), "data": items}


@router.get("/{patient_id}", summary="Get a patient profile")
def get_patient(patient_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    return {"success": True, "data": service.get(db, user, patient_id)}


@router.put("/{patient_id}", summary="Update a patient profile")
def update_patient(
    patient_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.update(db, user, patient_id, body)}


@router.delete("/{patient_id}", summary="Delete a patient profile")
def delete_patient(patient_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    service.delete(db, user, patient_id)
    return {"success": True, "data": {}}


@router.post("/{patient_id}/health-data", summary="Record vitals and get a CVD risk prediction")
def record_health_data(
    patient_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
    client: RiskPredictionClient = Depends(get_prediction_client),
):
    prediction, snapshot = service.record_health_data(db, client, user, patient_id, body)
    return {
        "success": True,
        "message": "Patient health data recorded and CVD risk prediction obtained.",
        "prediction": prediction.as_response(),
        "new_health_record": snapshot,
    }


@router.get("/{patient_id}/health-data", summary="List recorded CVD snapshots")
def list_health_data(patient_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_health_data(db, user, patient_id)
    return {"success": True, "count": len(items), "data": items}
