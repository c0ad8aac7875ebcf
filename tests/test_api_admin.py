import os
import unittest
from datetime import datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BOARD_DATABASE_URL", "sqlite:///:memory:")

import jobboard.api.main as main_module
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from jobboard.api.main import app
from jobboard.api.deps import db_session
from jobboard.db.models import Base, Listing, Submission

ADMIN = {"x-token": "secret"}


def _submission(id, state, **extra):
    return Submission(
        id=id,
        metro_slug="portland-or",
        city="Portland",
        state="OR",
        cafe_name=f"Cafe {id}",
        role="Barista",
        pay="$18/hr",
        apply_email=f"{id}@example.com",
        lifecycle_state=state,
        created_at=datetime(2025, 9, 1) + timedelta(hours=len(id)),
        **extra,
    )


class AdminModerationTests(unittest.TestCase):
    def setUp(self):
        self.prev_token = main_module.ADMIN_TOKEN
        main_module.ADMIN_TOKEN = "secret"

        engine = create_engine(
            "sqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        self.SessionLocal = sessionmaker(bind=engine)

        with self.SessionLocal() as session:
            session.add_all(
                [
                    _submission("p1", "pending_review", requested_pinned=True),
                    _submission("p22", "pending_review"),
                    _submission("s333", "submitted"),
                ]
            )
            session.commit()

        def override_db_session():
            with self.SessionLocal() as session:
                yield session

        app.dependency_overrides[db_session] = override_db_session
        self.client = TestClient(app)

    def tearDown(self):
        main_module.ADMIN_TOKEN = self.prev_token
        app.dependency_overrides.pop(db_session, None)

    def test_requires_token(self):
        self.assertEqual(self.client.get("/admin/submissions").status_code, 401)
        self.assertEqual(
            self.client.post("/admin/submissions/p1/approve", headers={"x-token": "wrong"}).status_code, 401
        )

    def test_review_queue(self):
        resp = self.client.get("/admin/submissions?state=pending_review", headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["id"] for s in resp.json()], ["p1", "p22"])
        self.assertTrue(resp.json()[0]["requested_pinned"])

        self.assertEqual(self.client.get("/admin/submissions?state=bogus", headers=ADMIN).status_code, 422)

    def test_approve_and_publish_with_pin(self):
        resp = self.client.post("/admin/submissions/p1/approve", json={"pin_days": 14}, headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        listing = resp.json()
        self.assertTrue(listing["pinned"])
        self.assertTrue(listing["pinned_now"])

        jobs = self.client.get("/metros/portland-or/jobs").json()
        self.assertEqual([j["id"] for j in jobs["items"]], [listing["id"]])

        again = self.client.post("/admin/submissions/p1/approve", headers=ADMIN)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "invalid_transition")

    def test_approve_without_body(self):
        resp = self.client.post("/admin/submissions/p22/approve", headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["pinned"])

    def test_cannot_approve_unpaid(self):
        resp = self.client.post("/admin/submissions/s333/approve", headers=ADMIN)
        self.assertEqual(resp.status_code, 409)

    def test_reject_requires_reason(self):
        resp = self.client.post("/admin/submissions/p1/reject", json={"reason": ""}, headers=ADMIN)
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "missing_rejection_reason")
        with self.SessionLocal() as session:
            self.assertEqual(session.get(Submission, "p1").lifecycle_state, "pending_review")

    def test_reject_then_refund(self):
        resp = self.client.post("/admin/submissions/p1/reject", json={"reason": "Not a café job"}, headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["lifecycle_state"], "rejected")
        self.assertTrue(resp.json()["refund_owed"])

        resp = self.client.post("/admin/submissions/p1/refund-confirmed", headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["lifecycle_state"], "refunded")

        resp = self.client.post("/admin/submissions/p1/approve", headers=ADMIN)
        self.assertEqual(resp.status_code, 409)

    def test_pin_and_unpin_listing(self):
        listing_id = self.client.post("/admin/submissions/p22/approve", headers=ADMIN).json()["id"]

        resp = self.client.post(f"/admin/listings/{listing_id}/pin", json={}, headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["pinned_now"])
        self.assertIsNone(resp.json()["pinned_until"])

        resp = self.client.post(
            f"/admin/listings/{listing_id}/pin", json={"until": "2000-01-01T00:00:00Z"}, headers=ADMIN
        )
        self.assertTrue(resp.json()["pinned"])
        self.assertFalse(resp.json()["pinned_now"])

        resp = self.client.delete(f"/admin/listings/{listing_id}/pin", headers=ADMIN)
        self.assertFalse(resp.json()["pinned"])

        with self.SessionLocal() as session:
            self.assertFalse(session.get(Listing, listing_id).pinned)

    def test_pin_errors(self):
        resp = self.client.post("/admin/listings/missing/pin", json={"days": 3}, headers=ADMIN)
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post(
            "/admin/listings/missing/pin", json={"days": 3, "until": "2030-01-01T00:00:00"}, headers=ADMIN
        )
        self.assertEqual(resp.status_code, 422)


if __name__ == "__main__":
    unittest.main()
