# -*- coding: utf-8 -*-
"""App database — SQLite connection handle and schema.

One connection is opened at startup and shared by every request; writes are serialised
through `transaction()`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        phone_number TEXT,
        emergency_contact1 TEXT,
        emergency_contact2 TEXT,
        emergency_contact3 TEXT,
        role TEXT NOT NULL DEFAULT 'user',
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS patient_profiles (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        date_of_birth TEXT NOT NULL,
        gender TEXT NOT NULL,
        diagnoses_json TEXT NOT NULL DEFAULT '[]',
        allergies_json TEXT NOT NULL DEFAULT '[]',
        medical_history TEXT NOT NULL DEFAULT '',
        last_blood_pressure_json TEXT,
        last_glucose_json TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_patient_profiles_user_created ON patient_profiles(user_id, created_at ASC);",
    """
    CREATE TABLE IF NOT EXISTS medications (
        id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL,
        name TEXT NOT NULL,
        dosage TEXT NOT NULL,
        frequency TEXT NOT NULL,
        instructions TEXT NOT NULL DEFAULT '',
        start_date TEXT NOT NULL,
        end_date TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL,
        FOREIGN KEY(patient_id) REFERENCES patient_profiles(id) ON DELETE CASCADE
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_medications_patient_created ON medications(patient_id, created_at ASC);",
    """
    CREATE TABLE IF NOT EXISTS health_records (
        id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL,
        type TEXT NOT NULL,
        value REAL,
        unit TEXT,
        systolic INTEGER,
        diastolic INTEGER,
        notes TEXT NOT NULL DEFAULT '',
        recorded_at TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(patient_id) REFERENCES patient_profiles(id) ON DELETE CASCADE
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_health_records_patient_type_recorded ON health_records(patient_id, type, recorded_at DESC);",
    """
    CREATE TABLE IF NOT EXISTS cvd_snapshots (
        id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL,
        date TEXT NOT NULL,
        age INTEGER NOT NULL,
        gender INTEGER NOT NULL,
        height REAL NOT NULL,
        weight REAL NOT NULL,
        ap_hi INTEGER NOT NULL,
        ap_lo INTEGER NOT NULL,
        cholesterol INTEGER NOT NULL,
        gluc INTEGER NOT NULL,
        smoke INTEGER NOT NULL,
        alco INTEGER NOT NULL,
        active INTEGER NOT NULL,
        bmi REAL NOT NULL,
        cvd_prediction_class INTEGER NOT NULL,
        low_risk_proba REAL,
        high_risk_proba REAL,
        cvd_alert_triggered INTEGER NOT NULL,
        notes TEXT,
        FOREIGN KEY(patient_id) REFERENCES patient_profiles(id) ON DELETE CASCADE
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_cvd_snapshots_patient ON cvd_snapshots(patient_id);",
)


def utc_now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(value: datetime) -> str:
    # Fixed-width UTC form so that lexical ORDER BY matches chronological order.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def load_json(raw: Optional[str], default: Any = None) -> Any:
    if not raw:
        return default
    return json.loads(raw)


class AppDatabase:
    """Process-wide SQLite handle with an explicit open/close lifecycle."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def open(self) -> None:
        if self._conn is not None:
            return
        target = str(self.db_path)
        if target != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        self._conn = conn
        self.init_schema()
        logger.info("Opened database at %s", target)

    def init_schema(self) -> None:
        with self.transaction() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Closed database at %s", self.db_path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                raise RuntimeError("Database is not open")
            conn = self._conn
            try:
                yield conn
                conn.commit()
            except BaseException:
                conn.rollback()
                raise


def get_db(request: Request) -> AppDatabase:
    return request.app.state.db
