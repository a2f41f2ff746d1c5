# -*- coding: utf-8 -*-
"""Feature vector and result types for the CVD risk model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

FEATURE_FIELDS = (
    "age",
    "gender",
    "height",
    "weight",
    "ap_hi",
    "ap_lo",
    "cholesterol",
    "gluc",
    "smoke",
    "alco",
    "active",
)

# height/weight are continuous; everything else the model reads as an integer code.
_FLOAT_FIELDS = {"height", "weight"}


@dataclass(frozen=True)
class FeatureVector:
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

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FeatureVector":
        """Coerce each feature to a number. Raises ValueError/TypeError/KeyError on bad input."""
        values: Dict[str, Any] = {}
        for name in FEATURE_FIELDS:
            raw = data[name]
            if isinstance(raw, bool):
                raw = int(raw)
            number = float(raw)
            values[name] = number if name in _FLOAT_FIELDS else int(round(number))
        return cls(**values)

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PredictionResult:
    prediction_class: int
    low_risk_proba: Optional[float]
    high_risk_proba: Optional[float]
    alert_triggered: bool

    @property
    def probabilities(self) -> Dict[str, Optional[float]]:
        return {"low_risk_proba": self.low_risk_proba, "high_risk_proba": self.high_risk_proba}

    def as_response(self) -> Dict[str, Any]:
        return {
            "class": self.prediction_class,
            "probabilities": self.probabilities,
            "alert": self.alert_triggered,
        }


def compute_bmi(weight_kg: float, height_cm: float) -> float:
    height_m = float(height_cm) / 100.0
    if height_m <= 0:
        raise ValueError("height must be positive")
    return float(weight_kg) / (height_m ** 2)
