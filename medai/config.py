from __future__ import annotations

import os
from pathlib import Path
from typing import List

DEV_JWT_SECRET = "dev-secret-change-me"


class Settings:
    """Centralized configuration for the MedAI backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        data_root_default = base_dir.parent / "data"

        db_raw = os.environ.get("MEDAI_DB_PATH") or str(data_root_default / "medai.db")
        self.db_path: Path = Path(db_raw) if db_raw == ":memory:" else Path(db_raw).expanduser()

        # MEDAI_JWT_SECRET must be set in production.
        self.jwt_secret: str = os.environ.get("MEDAI_JWT_SECRET") or DEV_JWT_SECRET
        self.token_ttl_days: int = int(os.environ.get("MEDAI_TOKEN_TTL_DAYS") or "30")

        self.ml_service_url: str = (
            os.environ.get("MEDAI_ML_SERVICE_URL")
            or os.environ.get("FLASK_ML_SERVICE_URL")
            or "https://medai-ml.onrender.com"
        )
        self.ml_predict_path: str = os.environ.get("MEDAI_ML_PREDICT_PATH") or "/predict_risk"
        self.ml_timeout: float = float(os.environ.get("MEDAI_ML_TIMEOUT") or "10")

        self.host: str = os.environ.get("MEDAI_HOST") or os.environ.get("HOST") or "127.0.0.1"
        port_raw = os.environ.get("MEDAI_PORT") or os.environ.get("PORT") or "5000"
        try:
            self.port: int = int(port_raw)
        except ValueError:
            self.port = 5000
        self.environment: str = os.environ.get("MEDAI_ENV") or os.environ.get("NODE_ENV") or "development"
        self.log_level: str = (os.environ.get("MEDAI_LOG_LEVEL") or "INFO").upper()

        cors = os.environ.get("MEDAI_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [c.strip() for c in cors.split(",") if c.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"
