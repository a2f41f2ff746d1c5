# -*- coding: utf-8 -*-
"""Medications — API endpoints (nested under a patient and top-level)."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..app_db import AppDatabase, get_db
from ..auth.security import get_current_user
from . import service

patient_router = APIRouter(prefix="/api/patients/{patient_id}/medications", tags=["Medications"])
router = APIRouter(prefix="/api/medications", tags=["Medications"])


@patient_router.post("", status_code=201, summary="Add a medication to a patient profile")
def add_patient_medication(
    patient_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.create(db, user, body, patient_id=patient_id)}


@patient_router.get("", summary="List medications for a patient profile")
def list_patient_medications(patient_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_patient(db, user, patient_id)
    return {"success": True, "count": len(items), "data": items}


@router.post("", status_code=201, summary="Add a medication (patient_id in body)")
def add_medication(
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.create(db, user, body)}


@router.get("", summary="List medications across the caller's patient profiles")
def list_medications(user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    items = service.list_for_user(db, user)
    return {"success": True, "count": len(items), "data": items}


@router.get("/{medication_id}", summary="Get a medication")
def get_medication(medication_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    return {"success": True, "data": service.get(db, user, medication_id)}


@router.put("/{medication_id}", summary="Update a medication")
def update_medication(
    medication_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    db: AppDatabase = Depends(get_db),
):
    return {"success": True, "data": service.update(db, user, medication_id, body)}


@router.delete("/{medication_id}", summary="Delete a medication")
def delete_medication(medication_id: str, user: dict = Depends(get_current_user), db: AppDatabase = Depends(get_db)):
    service.delete(db, user, medication_id)
    return {"success": True, "data": {}}
