# -*- coding: utf-8 -*-
"""Patient profiles — Pydantic models.

A profile belongs to the user who created it. CVD snapshots (vitals + prediction
outputs) are stored as their own rows and listed with the profile in insertion order.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from ..validation import not_in_future

ListItem = Annotated[str, StringConstraints(strip_whitespace=True, max_length=150)]


class Gender(str, Enum):
    male = "Male"
    female = "Female"
    other = "Other"
    undisclosed = "Prefer not to say"


class BloodPressureReading(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    systolic: Optional[float] = Field(None, ge=0)
    diastolic: Optional[float] = Field(None, ge=0)
    recorded_at: Optional[datetime] = None


class GlucoseReading(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    value: Optional[float] = Field(None, ge=0)
    unit: Optional[Literal["mg/dL", "mmol/L"]] = None
    recorded_at: Optional[datetime] = None


class PatientProfileRequest(BaseModel):
    """Body for create, and the merged document for update."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    diagnoses: List[ListItem] = Field(default_factory=list)
    allergies: List[ListItem] = Field(default_factory=list)
    medical_history: str = Field("", max_length=2000)
    last_recorded_blood_pressure: Optional[BloodPressureReading] = None
    last_recorded_glucose: Optional[GlucoseReading] = None

    @field_validator("date_of_birth")
    @classmethod
    def _dob_not_future(cls, value: date) -> date:
        return not_in_future(value, "Date of birth")


class HealthDataRequest(BaseModel):
    """The 11 model features plus optional notes for one CVD snapshot."""

    model_config = ConfigDict(allow_inf_nan=False)

    age: int = Field(..., ge=0, le=120)
    gender: int = Field(..., ge=0, le=1, description="0 male, 1 female (model encoding)")
    height: float = Field(..., ge=50, le=250, description="cm")
    weight: float = Field(..., ge=20, le=300, description="kg")
    ap_hi: int = Field(..., ge=50, le=300, description="systolic blood pressure")
    ap_lo: int = Field(..., ge=30, le=200, description="diastolic blood pressure")
    cholesterol: Literal[1, 2, 3]
    gluc: Literal[1, 2, 3]
    smoke: Literal[0, 1]
    alco: Literal[0, 1]
    active: Literal[0, 1]
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("cholesterol", "gluc", "smoke", "alco", "active", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Any:
        # Form-style clients send "1"; Literal[int] would reject the string.
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
        return value

    def features(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"notes"})


class PredictionProbabilities(BaseModel):
    low_risk_proba: Optional[float] = None
    high_risk_proba: Optional[float] = None


class CvdSnapshot(BaseModel):
    id: str
    date: str
    age: int
    gender: int
    height: float
    weight: float
    ap_hi: int
    ap_lo: int
    cholesterol: int
    gluc: int
    smoke: int
    alco: int
    active: int
    bmi: float
    cvd_prediction_class: int
    cvd_prediction_probabilities: PredictionProbabilities
    cvd_alert_triggered: bool
    notes: Optional[str] = None


class PatientProfile(BaseModel):
    id: str
    user_id: str
    name: str
    date_of_birth: str
    gender: Gender
    diagnoses: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    current_medications: List[str] = Field(default_factory=list)
    medical_history: str = ""
    last_recorded_blood_pressure: Optional[BloodPressureReading] = None
    last_recorded_glucose: Optional[GlucoseReading] = None
    health_records: List[CvdSnapshot] = Field(default_factory=list)
    created_at: str
