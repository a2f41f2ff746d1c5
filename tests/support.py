# -*- coding: utf-8 -*-
"""Shared fixtures: a fresh app per test with an in-memory DB and a stubbed ML service."""

from __future__ import annotations

import json
import unittest
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastapi.testclient import TestClient

from medai.api import create_app
from medai.auth.models import Role
from medai.auth.storage import set_user_role
from medai.config import Settings

ML_URL = "http://ml.test"

HEALTH_DATA = {
    "age": 50,
    "gender": 1,
    "height": 170,
    "weight": 70,
    "ap_hi": 120,
    "ap_lo": 80,
    "cholesterol": 1,
    "gluc": 1,
    "smoke": 0,
    "alco": 0,
    "active": 1,
}

CVD_RISK_FEATURES = {k: v for k, v in HEALTH_DATA.items() if k not in ("ap_hi", "ap_lo")}


def make_settings() -> Settings:
    settings = Settings()
    settings.db_path = Path(":memory:")
    settings.jwt_secret = "test-secret"
    settings.ml_service_url = ML_URL
    settings.ml_predict_path = "/predict_risk"
    settings.ml_timeout = 2.0
    settings.cors_origins = ["*"]
    return settings


class FakePredictionService:
    """httpx.MockTransport handler that records every feature payload it receives."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.response: Tuple[int, Any] = (
            200,
            {"prediction_class": 1, "prediction_probabilities": [0.3, 0.7], "send_alert": True},
        )
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(json.loads(request.content))
        if self.error is not None:
            raise self.error
        status, body = self.response
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.ml = FakePredictionService()
        self.settings = make_settings()
        self.app = create_app(self.settings, prediction_transport=httpx.MockTransport(self.ml))
        self.client = TestClient(self.app)
        # Entering the client runs the lifespan that opens the DB and the prediction client.
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def register(self, email: str, password: str = "password123") -> Dict[str, str]:
        resp = self.client.post("/api/auth/register", json={"email": email, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    def make_admin(self, email: str) -> None:
        self.assertTrue(set_user_role(self.app.state.db, email, Role.admin))

    def create_patient(self, headers: Dict[str, str], **overrides: Any) -> Dict[str, Any]:
        body = {"name": "Jane Doe", "date_of_birth": "1970-05-01", "gender": "Female"}
        body.update(overrides)
        resp = self.client.post("/api/patients", json=body, headers=headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["data"]

    def error_fields(self, resp: httpx.Response) -> List[str]:
        return [e["field"] for e in resp.json().get("errors", [])]
