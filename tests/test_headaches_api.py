import importlib
import sqlite3
import sys
import tempfile
import unittest
from datetime import date, timedelta

from fastapi.testclient import TestClient


class HeadacheApiTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = f"{self.tmp.name}/test.db"

        import config
        import db

        self._config = config
        self._db = db
        self._old_config_db_path = config.DB_PATH
        self._old_db_db_path = db.DB_PATH

        config.DB_PATH = self.db_path
        db.DB_PATH = self.db_path

        sys.modules.pop("main", None)
        main = importlib.import_module("main")
        self.client = TestClient(main.app)
        # Any response hands out the CSRF cookie.
        self.client.get("/api/health")
        self.csrf = self.client.cookies.get("csrf_token")

    def tearDown(self):
        self.client.close()
        self._config.DB_PATH = self._old_config_db_path
        self._db.DB_PATH = self._old_db_db_path
        sys.modules.pop("main", None)
        self.tmp.cleanup()

    def _headers(self):
        return {"origin": "http://testserver", "x-csrf-token": self.csrf}

    def _create(self, **payload):
        resp = self.client.post("/api/headaches", headers=self._headers(), json=payload)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["headache"]


class HeadacheCrudTests(HeadacheApiTestCase):
    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")

    def test_health_reports_unreachable_database(self):
        self._db.DB_PATH = f"{self.tmp.name}/missing-dir/test.db"
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["database"], "disconnected")

    def test_write_requires_csrf_header(self):
        resp = self.client.post(
            "/api/headaches",
            headers={"origin": "http://testserver"},
            json={"date": "2024-03-10", "severity": 3},
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json(), {"error": "forbidden"})

    def test_write_requires_same_origin(self):
        resp = self.client.post(
            "/api/headaches",
            headers={"origin": "http://evil.example", "x-csrf-token": self.csrf},
            json={"date": "2024-03-10", "severity": 3},
        )
        self.assertEqual(resp.status_code, 403)

    def test_create_and_get(self):
        created = self._create(
            date="2024-03-10",
            severity=4,
            notes="  Behind the eyes ",
            triggers=["stress", "hunger", "stress"],
            medications=["ibuprofen", {"name": "paracetamol", "dosage": "500mg"}],
        )
        self.assertEqual(created["date"], "2024-03-10")
        self.assertEqual(created["severity"], 4)
        self.assertEqual(created["notes"], "Behind the eyes")
        self.assertEqual(created["triggers"], ["stress", "hunger"])
        self.assertEqual(
            created["medications"],
            [{"name": "ibuprofen", "dosage": None}, {"name": "paracetamol", "dosage": "500mg"}],
        )

        resp = self.client.get(f"/api/headaches/{created['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["headache"], created)

    def test_create_accepts_datetime_and_string_severity(self):
        created = self._create(date="2024-03-10T21:45", severity="2", triggers="stress, hunger")
        self.assertEqual(created["date"], "2024-03-10")
        self.assertEqual(created["severity"], 2)
        self.assertEqual(created["triggers"], ["stress", "hunger"])
        self.assertEqual(created["medications"], [])

    def test_create_validation(self):
        tomorrow = (date.today() + timedelta(days=2)).isoformat()
        cases = [
            ({"severity": 3}, "Date and severity are required"),
            ({"date": "2024-03-10"}, "Date and severity are required"),
            ({"date": "10/03/2024", "severity": 3}, "Invalid date format"),
            ({"date": tomorrow, "severity": 3}, "Date cannot be in the future"),
            ({"date": "2024-03-10", "severity": 6}, "Severity must be between 1 and 5"),
            ({"date": "2024-03-10", "severity": "bad"}, "Severity must be a whole number"),
            ({"date": "2024-03-10", "severity": 2.5}, "Severity must be a whole number"),
        ]
        for payload, message in cases:
            with self.subTest(payload=payload):
                resp = self.client.post("/api/headaches", headers=self._headers(), json=payload)
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json(), {"ok": False, "error": message})

    def test_list_is_newest_first_and_filterable(self):
        first = self._create(date="2024-01-05", severity=1)
        second = self._create(date="2024-02-05", severity=2)
        third = self._create(date="2024-03-05", severity=3)

        resp = self.client.get("/api/headaches")
        self.assertEqual(
            [h["id"] for h in resp.json()["headaches"]], [third["id"], second["id"], first["id"]]
        )

        resp = self.client.get("/api/headaches", params={"from_date": "2024-02-01", "to_date": "2024-02-29"})
        self.assertEqual([h["id"] for h in resp.json()["headaches"]], [second["id"]])

    def test_update_is_partial(self):
        created = self._create(
            date="2024-03-10", severity=4, notes="first", triggers=["stress"], medications=["aspirin"]
        )
        resp = self.client.put(
            f"/api/headaches/{created['id']}", headers=self._headers(), json={"severity": 2}
        )
        self.assertEqual(resp.status_code, 200)
        updated = resp.json()["headache"]
        self.assertEqual(updated["severity"], 2)
        self.assertEqual(updated["date"], "2024-03-10")
        self.assertEqual(updated["notes"], "first")
        self.assertEqual(updated["triggers"], ["stress"])
        self.assertEqual(updated["medications"], [{"name": "aspirin", "dosage": None}])

    def test_update_replaces_medications(self):
        created = self._create(date="2024-03-10", severity=4, medications=["aspirin", "ibuprofen"])
        resp = self.client.put(
            f"/api/headaches/{created['id']}",
            headers=self._headers(),
            json={"medications": [{"name": "zolmitriptan", "dosage": "2.5mg"}], "triggers": []},
        )
        self.assertEqual(resp.status_code, 200)
        updated = resp.json()["headache"]
        self.assertEqual(updated["medications"], [{"name": "zolmitriptan", "dosage": "2.5mg"}])
        self.assertEqual(updated["triggers"], [])

    def test_update_validation_and_missing(self):
        created = self._create(date="2024-03-10", severity=4)
        resp = self.client.put(
            f"/api/headaches/{created['id']}", headers=self._headers(), json={"severity": 0}
        )
        self.assertEqual(resp.status_code, 400)

        resp = self.client.put("/api/headaches/9999", headers=self._headers(), json={"severity": 2})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"ok": False, "error": "Headache entry not found"})

    def test_delete_removes_entry_and_medications(self):
        created = self._create(date="2024-03-10", severity=4, medications=["aspirin"])
        resp = self.client.delete(f"/api/headaches/{created['id']}", headers=self._headers())
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json().get("ok"))

        self.assertEqual(self.client.get(f"/api/headaches/{created['id']}").status_code, 404)
        with sqlite3.connect(self.db_path) as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM headache_medications WHERE entry_id = ?", (created["id"],)
            ).fetchone()[0]
        self.assertEqual(count, 0)

        again = self.client.delete(f"/api/headaches/{created['id']}", headers=self._headers())
        self.assertEqual(again.status_code, 404)

    def test_options(self):
        resp = self.client.get("/api/headaches/options")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertIn({"id": "ibuprofen", "name": "Ibuprofen"}, body["medications"])
        self.assertIn({"id": "stress", "label": "Stress"}, body["triggers"])

    def test_timestamps_follow_client_offset(self):
        self.client.cookies.set("tz_offset", "120")
        created = self._create(date="2024-03-10", severity=3)
        with sqlite3.connect(self.db_path) as conn:
            stored = conn.execute(
                "SELECT created_at FROM headache_entries WHERE id = ?", (created["id"],)
            ).fetchone()[0]
        from datetime import datetime as _dt

        stored_dt = _dt.strptime(stored, "%Y-%m-%d %H:%M:%S")
        api_dt = _dt.strptime(created["created_at"], "%Y-%m-%d %H:%M:%S")
        self.assertEqual(round((stored_dt - api_dt).total_seconds() / 60), 120)


if __name__ == "__main__":
    unittest.main()
