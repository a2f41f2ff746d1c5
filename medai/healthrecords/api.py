# -*- coding: utf-8 -*-
"""Health records — API endpoints (nested under a patient and top-level)."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..app_db import AppDatabase, get_db
from ..auth.security import get_current_user
from ..prediction import RiskPredictionClient, get_prediction_client
from . import service

patient_router = APIRouter(prefix="/api/patients/{patient_id}/healthrecords", tags=["Health records"])
router = APIRouter(prefix="/api/healthrecords", tags=["Health records"])


# ---------- nested: /api/patients/{patient_id}/healthrecords ----------


@patient_router.post("", status_code=201, summary="Add a health record to a patient profile")
def create_patient_record(
    patient_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.create(db, user, body, patient_id=patient_id)}


@patient_router.get("", summary="List a patient's health records, most recent first")
def list_patient_records(patient_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_patient(db, user, patient_id)
    return {"success": True, "count": len(items), "data": items}


@patient_router.get("/type/{record_type}", summary="List a patient's health records of one type")
def list_patient_records_by_type(
    patient_id: str,
    record_type: str,
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    items = service.list_for_patient(db, user, patient_id, record_type)
    return {"success": True, "count": len(items), "data": items}


@patient_router.post("/predict-cvd-risk", summary="CVD risk from the latest blood pressure reading")
def predict_patient_cvd_risk(
    patient_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
    client: RiskPredictionClient = Depends(get_prediction_client),
):
    return {"success": True, "data": service.predict_cvd_risk(db, client, user, body, patient_id=patient_id)}


# ---------- top-level: /api/healthrecords ----------


@router.post("", status_code=201, summary="Add a health record (patient_id in body)")
def create_record(
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.create(db, user, body)}


@router.get("", summary="List health records across the caller's patient profiles")
def list_records(user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_user(db, user)
    return {"success": True, "count": len(items), "data": items}


@router.get("/type/{record_type}", summary="List health records of one type across the caller's profiles")
def list_records_by_type(record_type: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_user(db, user, record_type)
    return {"success": True, "count": len(items), "data": items}


@router.post("/predict-cvd-risk", summary="CVD risk from the latest blood pressure reading (patient_id in body)")
def predict_cvd_risk(
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
    client: RiskPredictionClient = Depends(get_prediction_client),
):
    return {"success": True, "data": service.predict_cvd_risk(db, client, user, body)}


@router.get("/{record_id}", summary="Get a health record")
def get_record(record_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    return {"success": True, "data": service.get(db, user, record_id)}


@router.put("/{record_id}", summary="Update a health record")
def update_record(
    record_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.update(db, user, record_id, body)}


@router.delete("/{record_id}", summary="Delete a health record")
def delete_record(record_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    service.delete(db, user, record_id)
    return {"success": True, "data": {}}
