# -*- coding: utf-8 -*-
"""
MedAI backend API

Patient profiles, medications, health records and CVD risk prediction.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .app_db import AppDatabase
from .auth.api import router as auth_router
from .config import DEV_JWT_SECRET, Settings
from .errors import install_error_handlers
from .healthrecords.api import patient_router as patient_healthrecords_router
from .healthrecords.api import router as healthrecords_router
from .medications.api import patient_router as patient_medications_router
from .medications.api import router as medications_router
from .patients.api import router as patients_router
from .prediction import RiskPredictionClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    prediction_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """Build the application; the DB and prediction client live for the lifespan of the app."""
    settings = settings or Settings()
    if settings.is_production and settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("MEDAI_JWT_SECRET is not set; tokens are signed with the development secret")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = AppDatabase(settings.db_path)
        db.open()
        client = RiskPredictionClient(
            settings.ml_service_url,
            predict_path=settings.ml_predict_path,
            timeout=settings.ml_timeout,
            transport=prediction_transport,
        )
        client.open()
        app.state.db = db
        app.state.prediction_client = client
        logger.info("MedAI backend started (%s)", settings.environment)
        try:
            yield
        finally:
            client.close()
            db.close()
            logger.info("MedAI backend stopped")

    app = FastAPI(
        title="MedAI Backend",
        description="Patient profiles, medications, health records and CVD risk prediction",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(patients_router)
    app.include_router(patient_medications_router)
    app.include_router(medications_router)
    app.include_router(patient_healthrecords_router)
    app.include_router(healthrecords_router)

    @app.get("/api/health", include_in_schema=False)
    def health() -> dict:
        return {"success": True, "status": "ok"}

    return app


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("medai.api:create_app", factory=True, host=settings.host, port=settings.port, reload=False)
