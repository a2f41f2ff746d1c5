# -*- coding: utf-8 -*-
"""Medications — Pydantic models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class MedicationStatus(str, Enum):
    active = "active"
    discontinued = "discontinued"
    completed = "completed"


class MedicationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    dosage: str = Field(..., min_length=1, max_length=50, description="e.g. 10mg, 2 tablets")
    frequency: str = Field(..., min_length=1, max_length=100, description="e.g. Once daily")
    instructions: str = Field("", max_length=500)
    start_date: date
    end_date: Optional[date] = None
    status: MedicationStatus = MedicationStatus.active

    @field_validator("end_date")
    @classmethod
    def _end_not_before_start(cls, value: Optional[date], info: ValidationInfo) -> Optional[date]:
        start = info.data.get("start_date")
        if value is not None and start is not None and value < start:
            raise ValueError("End date cannot be before start date")
        return value


class Medication(BaseModel):
    id: str
    patient_id: str
    name: str
    dosage: str
    frequency: str
    instructions: str = ""
    start_date: str
    end_date: Optional[str] = None
    status: MedicationStatus = MedicationStatus.active
    created_at: str
