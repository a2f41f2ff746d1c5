# -*- coding: utf-8 -*-
"""Health records — Pydantic models.

Record bodies are a union tagged by `type`. Each variant only accepts the fields that
make sense for it:

- blood_pressure                  systolic + diastolic
- glucose / weight / heart_rate   value + unit
- symptom_log / activity / food_intake / sleep / other   notes only
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..validation import not_in_future


class HealthRecordType(str, Enum):
    blood_pressure = "blood_pressure"
    glucose = "glucose"
    weight = "weight"
    heart_rate = "heart_rate"
    symptom_log = "symptom_log"
    activity = "activity"
    food_intake = "food_intake"
    sleep = "sleep"
    other = "other"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _RecordBody(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, allow_inf_nan=False)

    notes: str = Field("", max_length=1000)
    recorded_at: datetime = Field(default_factory=_now, description="When the reading was taken")

    @field_validator("recorded_at")
    @classmethod
    def _not_future(cls, value: datetime) -> datetime:
        return not_in_future(value, "Recorded date")


class BloodPressureRecord(_RecordBody):
    type: Literal["blood_pressure"]
    systolic: int = Field(..., ge=0, le=400)
    diastolic: int = Field(..., ge=0, le=400)


class MeasurementRecord(_RecordBody):
    type: Literal["glucose", "weight", "heart_rate"]
    value: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=20, description="mg/dL, mmol/L, kg, lbs, bpm, ...")


class FreeFormRecord(_RecordBody):
    type: Literal["symptom_log", "activity", "food_intake", "sleep", "other"]


HealthRecordBody = Annotated[
    Union[BloodPressureRecord, MeasurementRecord, FreeFormRecord],
    Field(discriminator="type"),
]

health_record_body = TypeAdapter(HealthRecordBody)


class HealthRecord(BaseModel):
    id: str
    patient_id: str
    type: HealthRecordType
    value: Optional[float] = None
    unit: Optional[str] = None
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    notes: str = ""
    recorded_at: str
    created_at: str


class CvdRiskRequest(BaseModel):
    """Body for predict-cvd-risk; blood pressure comes from the latest stored reading."""

    model_config = ConfigDict(allow_inf_nan=False)

    patient_id: Optional[str] = None
    age: int = Field(..., ge=0, le=120)
    gender: int = Field(..., ge=0, le=1)
    height: float = Field(..., ge=50, le=250)
    weight: float = Field(..., ge=20, le=300)
    cholesterol: int = Field(..., ge=1, le=3)
    gluc: int = Field(..., ge=1, le=3)
    smoke: int = Field(..., ge=0, le=1)
    alco: int = Field(..., ge=0, le=1)
    active: int = Field(..., ge=0, le=1)
