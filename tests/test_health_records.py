# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from tests.support import CVD_RISK_FEATURES, ApiTestCase


class TestHealthRecords(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.headers = self.register("owner@example.com")
        self.pid = self.create_patient(self.headers)["id"]
        self.base = f"/api/patients/{self.pid}/healthrecords"

    def _add(self, body, headers=None):
        return self.client.post(self.base, json=body, headers=headers or self.headers)

    def test_blood_pressure_stores_only_pressure_fields(self) -> None:
        resp = self._add({"type": "blood_pressure", "systolic": 128, "diastolic": 82, "notes": "morning"})
        self.assertEqual(resp.status_code, 201, resp.text)
        record = resp.json()["data"]
        self.assertEqual(record["type"], "blood_pressure")
        self.assertEqual((record["systolic"], record["diastolic"]), (128, 82))
        self.assertIsNone(record["value"])
        self.assertIsNone(record["unit"])
        self.assertEqual(record["patient_id"], self.pid)

    def test_blood_pressure_rejects_measurement_fields(self) -> None:
        resp = self._add({"type": "blood_pressure", "systolic": 128, "value": 5, "unit": "kg"})
        self.assertEqual(resp.status_code, 400)
        errors = {e["field"]: e["message"] for e in resp.json()["errors"]}
        self.assertEqual(sorted(errors), ["diastolic", "unit", "value"])
        self.assertEqual(errors["value"], "'value' is not allowed for this record type.")
        self.assertEqual(errors["diastolic"], "'diastolic' is required.")

    def test_measurement_requires_value_and_unit(self) -> None:
        resp = self._add({"type": "glucose", "value": 5.4, "unit": "mmol/L"})
        self.assertEqual(resp.status_code, 201, resp.text)
        record = resp.json()["data"]
        self.assertEqual(record["value"], 5.4)
        self.assertEqual(record["unit"], "mmol/L")
        self.assertIsNone(record["systolic"])
        self.assertIsNone(record["diastolic"])

        resp = self._add({"type": "heart_rate", "systolic": 100})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(sorted(self.error_fields(resp)), ["systolic", "unit", "value"])

    def test_free_form_types_and_null_fields(self) -> None:
        resp = self._add({"type": "Symptom_Log", "notes": "headache", "value": None})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["data"]["type"], "symptom_log")

    def test_unknown_type_and_future_date(self) -> None:
        resp = self._add({"type": "mood"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["type"])

        resp = self._add({"notes": "no type"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["type"])

        resp = self._add({"type": "weight", "value": 70, "unit": "kg", "recorded_at": "2999-01-01T00:00:00Z"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["recorded_at"])

    def test_non_finite_value_is_rejected(self) -> None:
        resp = self.client.post(
            self.base,
            content='{"type": "weight", "value": Infinity, "unit": "kg"}',
            headers={**self.headers, "Content-Type": "application/json"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["value"])

        resp = self.client.get(self.base, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["count"], 0)

    def test_out_of_range_pressure_and_dates(self) -> None:
        resp = self._add({"type": "blood_pressure", "systolic": 10**20, "diastolic": 80})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["systolic"])

        for when in ("0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"):
            resp = self._add({"type": "sleep", "recorded_at": when})
            self.assertEqual(resp.status_code, 400, when)
            self.assertEqual(self.error_fields(resp), ["recorded_at"])

        resp = self.client.get(self.base, headers=self.headers)
        self.assertEqual(resp.json()["count"], 0)

    def test_list_is_most_recent_first(self) -> None:
        ids = {}
        for label, when in (("t2", "2024-02-01T08:00:00Z"), ("t3", "2024-03-01T08:00:00Z"), ("t1", "2024-01-01T08:00:00Z")):
            resp = self._add({"type": "weight", "value": 70, "unit": "kg", "recorded_at": when})
            self.assertEqual(resp.status_code, 201, resp.text)
            ids[label] = resp.json()["data"]["id"]

        resp = self.client.get(self.base, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([r["id"] for r in resp.json()["data"]], [ids["t3"], ids["t2"], ids["t1"]])

    def test_filter_by_type(self) -> None:
        self._add({"type": "weight", "value": 70, "unit": "kg"})
        self._add({"type": "blood_pressure", "systolic": 120, "diastolic": 80})

        resp = self.client.get(f"{self.base}/type/blood_pressure", headers=self.headers)
        self.assertEqual(resp.json()["count"], 1)
        self.assertEqual(resp.json()["data"][0]["type"], "blood_pressure")

        resp = self.client.get("/api/healthrecords/type/weight", headers=self.headers)
        self.assertEqual(resp.json()["count"], 1)

        resp = self.client.get(f"{self.base}/type/mood", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_get_is_idempotent(self) -> None:
        record_id = self._add({"type": "heart_rate", "value": 72, "unit": "bpm"}).json()["data"]["id"]
        first = self.client.get(f"/api/healthrecords/{record_id}", headers=self.headers)
        second = self.client.get(f"/api/healthrecords/{record_id}", headers=self.headers)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.content, second.content)

    def test_update_revalidates_merged_record(self) -> None:
        record = self._add({"type": "blood_pressure", "systolic": 120, "diastolic": 80}).json()["data"]
        url = f"/api/healthrecords/{record['id']}"

        resp = self.client.put(url, json={"systolic": 135, "patient_id": "elsewhere"}, headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        updated = resp.json()["data"]
        self.assertEqual(updated["systolic"], 135)
        self.assertEqual(updated["diastolic"], 80)
        self.assertEqual(updated["patient_id"], self.pid)
        self.assertEqual(updated["recorded_at"], record["recorded_at"])

        resp = self.client.put(url, json={"value": 3}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["value"])

        resp = self.client.put(
            url, json={"type": "glucose", "systolic": None, "diastolic": None, "value": 99, "unit": "mg/dL"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["type"], "glucose")
        self.assertIsNone(resp.json()["data"]["systolic"])

    def test_delete_then_not_found(self) -> None:
        record_id = self._add({"type": "sleep", "notes": "7h"}).json()["data"]["id"]
        resp = self.client.delete(f"/api/healthrecords/{record_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.get(f"/api/healthrecords/{record_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_top_level_routes(self) -> None:
        resp = self.client.post("/api/healthrecords", json={"type": "activity", "notes": "walk"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["patient_id"])

        resp = self.client.post("/api/healthrecords", json={"notes": "walk"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.error_fields(resp), ["patient_id", "type"])

        resp = self.client.post(
            "/api/healthrecords",
            json={"type": "activity", "notes": "walk", "patient_id": self.pid},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201, resp.text)

        other = self.register("other@example.com")
        other_pid = self.create_patient(other)["id"]
        self.client.post(
            f"/api/patients/{other_pid}/healthrecords", json={"type": "other", "notes": "x"}, headers=other
        )

        self.assertEqual(self.client.get("/api/healthrecords", headers=self.headers).json()["count"], 1)
        self.assertEqual(self.client.get("/api/healthrecords", headers=other).json()["count"], 1)

        self.make_admin("other@example.com")
        self.assertEqual(self.client.get("/api/healthrecords", headers=other).json()["count"], 2)

    def test_non_owner_is_forbidden_everywhere(self) -> None:
        record_id = self._add({"type": "blood_pressure", "systolic": 120, "diastolic": 80}).json()["data"]["id"]
        intruder = self.register("intruder@example.com")

        checks = [
            self.client.post(self.base, json={"type": "sleep"}, headers=intruder),
            self.client.get(self.base, headers=intruder),
            self.client.get(f"{self.base}/type/blood_pressure", headers=intruder),
            self.client.post(f"{self.base}/predict-cvd-risk", json=CVD_RISK_FEATURES, headers=intruder),
            self.client.get(f"/api/healthrecords/{record_id}", headers=intruder),
            self.client.put(f"/api/healthrecords/{record_id}", json={"systolic": 1}, headers=intruder),
            self.client.delete(f"/api/healthrecords/{record_id}", headers=intruder),
        ]
        self.assertEqual([r.status_code for r in checks], [403] * len(checks))
        self.assertEqual(self.ml.calls, [])

        resp = self.client.get(f"/api/healthrecords/{record_id}", headers=self.headers)
        self.assertEqual(resp.json()["data"]["systolic"], 120)


class TestPredictCvdRisk(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.headers = self.register("owner@example.com")
        self.pid = self.create_patient(self.headers)["id"]

    def test_uses_latest_blood_pressure(self) -> None:
        base = f"/api/patients/{self.pid}/healthrecords"
        self.client.post(
            base,
            json={"type": "blood_pressure", "systolic": 150, "diastolic": 95, "recorded_at": "2024-01-01T08:00:00Z"},
            headers=self.headers,
        )
        latest = self.client.post(
            base,
            json={"type": "blood_pressure", "systolic": 132, "diastolic": 84, "recorded_at": "2024-06-01T08:00:00Z"},
            headers=self.headers,
        ).json()["data"]

        resp = self.client.post(f"{base}/predict-cvd-risk", json=CVD_RISK_FEATURES, headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()["data"]
        self.assertEqual(data["patient_id"], self.pid)
        self.assertEqual(data["latest_blood_pressure"]["id"], latest["id"])
        self.assertEqual(data["prediction"]["class"], 1)
        self.assertEqual(self.ml.calls[0]["ap_hi"], 132)
        self.assertEqual(self.ml.calls[0]["ap_lo"], 84)

        resp = self.client.get(f"/api/patients/{self.pid}/health-data", headers=self.headers)
        self.assertEqual(resp.json()["count"], 0)

    def test_top_level_route_takes_patient_id_from_body(self) -> None:
        self.client.post(
            f"/api/patients/{self.pid}/healthrecords",
            json={"type": "blood_pressure", "systolic": 120, "diastolic": 80},
            headers=self.headers,
        )
        resp = self.client.post(
            "/api/healthrecords/predict-cvd-risk", json={**CVD_RISK_FEATURES, "patient_id": self.pid}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["features"]["ap_hi"], 120)

    def test_without_blood_pressure_record(self) -> None:
        resp = self.client.post(
            f"/api/patients/{self.pid}/healthrecords/predict-cvd-risk", json=CVD_RISK_FEATURES, headers=self.headers
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], f"No blood pressure records found for patient {self.pid}.")
        self.assertEqual(self.ml.calls, [])

    def test_top_level_route_reports_missing_patient_and_features(self) -> None:
        resp = self.client.post("/api/healthrecords/predict-cvd-risk", json={"age": 50}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        fields = self.error_fields(resp)
        self.assertEqual(fields[0], "patient_id")
        self.assertIn("height", fields)
        self.assertEqual(self.ml.calls, [])

    def test_missing_features_are_reported(self) -> None:
        resp = self.client.post(
            f"/api/patients/{self.pid}/healthrecords/predict-cvd-risk", json={"age": 50}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("height", self.error_fields(resp))
        self.assertNotIn("age", self.error_fields(resp))


if __name__ == "__main__":
    unittest.main()
