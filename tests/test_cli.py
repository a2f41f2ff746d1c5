# -*- coding: utf-8 -*-

from __future__ import annotations

import contextlib
import io
import shutil
import tempfile
import unittest
from pathlib import Path

from medai.app_db import AppDatabase
from medai.auth.models import RegisterRequest
from medai.auth.storage import create_user, get_user_by_email
from medai.cli import main


class TestAdminCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="medai-test-"))
        self.addCleanup(shutil.rmtree, self._tmp, True)
        self.db_path = self._tmp / "data" / "medai.db"

    def _run(self, *argv: str) -> int:
        with contextlib.redirect_stdout(io.StringIO()):
            return main(["--db-path", str(self.db_path), *argv])

    def test_init_db_creates_file(self) -> None:
        self.assertEqual(self._run("init-db"), 0)
        self.assertTrue(self.db_path.exists())

    def test_promote_registered_user(self) -> None:
        db = AppDatabase(self.db_path)
        db.open()
        create_user(db, RegisterRequest(email="root@example.com", password="password123"), password_hash="x")
        db.close()

        self.assertEqual(self._run("promote", "ROOT@example.com"), 0)
        self.assertEqual(self._run("promote", "missing@example.com"), 1)

        db.open()
        self.addCleanup(db.close)
        self.assertEqual(get_user_by_email(db, "root@example.com")["role"], "admin")


if __name__ == "__main__":
    unittest.main()
