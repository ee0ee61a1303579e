# Overview: Pytest coverage for OTP sign-in, sessions and the profile endpoints.

"""
Authentication Tests

FLOW UNDER TEST: register -> OTP email -> verify -> bearer token -> logout.
Email delivery is replaced by the sent_emails / failing_email fixtures.
"""

from datetime import timedelta

import bcrypt
import pytest

from instasupply.extensions import db
from instasupply.models import Supplier, SessionToken
from instasupply.services import auth_service, session_service
from instasupply.time_utils import utcnow


REGISTRATION = {
    "name": "Northwind Lumber",
    "email": "Sales@Northwind.com",
    "password": "timber1",
    "phone": "555-0199",
}


def _register(client):
    return client.post("/api/auth/register", json=REGISTRATION)


class TestRegister:
    def test_creates_unverified_supplier_and_sends_otp(self, client, db_session, sent_emails):
        resp = _register(client)

        assert resp.status_code == 201
        assert resp.json["message"] == "OTP sent to email."
        supplier = db.session.query(Supplier).one()
        assert supplier.email == "sales@northwind.com"
        assert supplier.is_verified is False
        assert supplier.password_hash != "timber1"
        assert bcrypt.checkpw(b"timber1", supplier.password_hash.encode("utf-8"))
        assert len(sent_emails) == 1
        to_address, otp = sent_emails[0]
        assert to_address == "sales@northwind.com"
        assert 1000 <= int(otp) <= 9999
        assert supplier.otp_hash == auth_service.hash_otp(otp)

    def test_email_failure_does_not_fail_registration(self, client, db_session, failing_email):
        resp = _register(client)

        assert resp.status_code == 201
        assert db.session.query(Supplier).count() == 1

    def test_duplicate_email_conflicts(self, client, db_session, sent_emails):
        _register(client)

        resp = client.post("/api/auth/register", json={**REGISTRATION, "email": "sales@NORTHWIND.com"})

        assert resp.status_code == 409

    @pytest.mark.parametrize("override", [
        {"password": "short"},
        {"name": ""},
        {"email": "not-an-email"},
    ])
    def test_invalid_input(self, client, db_session, sent_emails, override):
        resp = client.post("/api/auth/register", json={**REGISTRATION, **override})

        assert resp.status_code == 400
        assert db.session.query(Supplier).count() == 0


class TestVerifyOtp:
    def test_valid_otp_issues_token(self, client, db_session, sent_emails):
        _register(client)
        otp = sent_emails[-1][1]

        resp = client.post("/api/auth/verify-otp", json={"email": "sales@northwind.com", "otp": otp})

        assert resp.status_code == 200
        assert len(resp.json["token"]) == 64
        assert resp.json["user"]["is_verified"] is True
        supplier = db.session.query(Supplier).one()
        assert supplier.otp_hash is None
        assert supplier.otp_expires_at is None

        me = client.get("/api/users/me", headers={"Authorization": f"Bearer {resp.json['token']}"})
        assert me.status_code == 200
        assert me.json["user"]["email"] == "sales@northwind.com"

    def test_otp_is_single_use(self, client, db_session, sent_emails):
        _register(client)
        otp = sent_emails[-1][1]
        client.post("/api/auth/verify-otp", json={"email": "sales@northwind.com", "otp": otp})

        resp = client.post("/api/auth/verify-otp", json={"email": "sales@northwind.com", "otp": otp})

        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid OTP"

    def test_wrong_otp(self, client, db_session, sent_emails):
        _register(client)
        otp = sent_emails[-1][1]
        wrong = "1000" if otp != "1000" else "1001"

        resp = client.post("/api/auth/verify-otp", json={"email": "sales@northwind.com", "otp": wrong})

        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid OTP"

    def test_expired_otp(self, client, db_session, sent_emails):
        _register(client)
        otp = sent_emails[-1][1]
        supplier = db.session.query(Supplier).one()
        supplier.otp_expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()

        resp = client.post("/api/auth/verify-otp", json={"email": "sales@northwind.com", "otp": otp})

        assert resp.status_code == 400
        assert "expired" in resp.json["error"]

    def test_unknown_email(self, client, db_session):
        resp = client.post("/api/auth/verify-otp", json={"email": "ghost@nowhere.com", "otp": "1234"})
        assert resp.status_code == 404


class TestRequestOtp:
    def test_sends_new_code(self, client, supplier_a, sent_emails):
        resp = client.post("/api/auth/request-otp", json={"email": supplier_a.email})

        assert resp.status_code == 200
        assert sent_emails[-1][0] == supplier_a.email

    def test_unknown_email(self, client, db_session, sent_emails):
        resp = client.post("/api/auth/request-otp", json={"email": "ghost@nowhere.com"})
        assert resp.status_code == 404

    def test_email_failure_is_500(self, client, supplier_a, failing_email):
        resp = client.post("/api/auth/request-otp", json={"email": supplier_a.email})
        assert resp.status_code == 500


class TestChangeEmail:
    def test_changes_pending_email(self, client, db_session, sent_emails):
        _register(client)

        resp = client.post("/api/auth/change-email", json={
            "old_email": "sales@northwind.com",
            "new_email": "orders@northwind.com",
        })

        assert resp.status_code == 200
        assert resp.json["new_email"] == "orders@northwind.com"
        assert sent_emails[-1][0] == "orders@northwind.com"

    def test_verified_account_cannot_change(self, client, supplier_a, sent_emails):
        resp = client.post("/api/auth/change-email", json={
            "oldEmail": supplier_a.email,
            "newEmail": "other@acme.com",
        })
        assert resp.status_code == 400

    def test_change_after_new_otp_revokes_sessions(self, client, supplier_a, headers_a, sent_emails):
        client.post("/api/auth/request-otp", json={"email": supplier_a.email})

        resp = client.post("/api/auth/change-email", json={
            "old_email": supplier_a.email,
            "new_email": "renamed@acme.com",
        })

        assert resp.status_code == 200
        assert client.get("/api/users/me", headers=headers_a).status_code == 401

    def test_taken_email_conflicts(self, client, supplier_b, sent_emails):
        _register(client)

        resp = client.post("/api/auth/change-email", json={
            "old_email": "sales@northwind.com",
            "new_email": supplier_b.email,
        })
        assert resp.status_code == 409

    def test_invalid_format(self, client, db_session, sent_emails):
        _register(client)

        resp = client.post("/api/auth/change-email", json={
            "old_email": "sales@northwind.com",
            "new_email": "nope@",
        })
        assert resp.status_code == 400


class TestSessions:
    def test_logout_revokes_token(self, client, headers_a):
        assert client.post("/api/auth/logout", headers=headers_a).status_code == 200
        assert client.get("/api/users/me", headers=headers_a).status_code == 401

    def test_expired_session_rejected(self, client, supplier_a, token_a, headers_a):
        session = db.session.query(SessionToken).filter_by(supplier_id=supplier_a.id).one()
        session.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()

        assert client.get("/api/users/me", headers=headers_a).status_code == 401

    def test_deactivated_supplier_rejected(self, client, supplier_a, headers_a):
        supplier_a.is_active = False
        db.session.commit()

        assert client.get("/api/users/me", headers=headers_a).status_code == 401

    def test_session_lifetime_from_config(self, app, supplier_a):
        session, _ = session_service.create_session(supplier_a.id)
        lifetime = session.expires_at - session.created_at
        assert lifetime == timedelta(hours=app.config["SESSION_TTL_HOURS"])

    def test_cleanup_removes_old_expired_sessions(self, supplier_a):
        session, _ = session_service.create_session(supplier_a.id)
        session.created_at = utcnow() - timedelta(days=60)
        session.expires_at = utcnow() - timedelta(days=50)
        db.session.commit()

        assert session_service.cleanup_expired_sessions() == 1
        assert db.session.query(SessionToken).count() == 0


class TestProfile:
    def test_update_profile(self, client, headers_a):
        resp = client.put("/api/users/profile", json={
            "name": "Acme Supply Co",
            "website": "https://acme.example.com",
            "address": {"city": "Portland", "zip_code": "97201"},
        }, headers=headers_a)

        assert resp.status_code == 200
        user = resp.json["user"]
        assert user["name"] == "Acme Supply Co"
        assert user["address"]["city"] == "Portland"
        assert user["address"]["zip_code"] == "97201"

    def test_blank_name_rejected(self, client, headers_a):
        resp = client.put("/api/users/profile", json={"name": "  "}, headers=headers_a)
        assert resp.status_code == 400


class TestSystemRoutes:
    def test_banner_and_health(self, client, db_session):
        assert client.get("/").status_code == 200
        health = client.get("/api/health")
        assert health.status_code == 200
        assert health.json["status"] == "healthy"

    def test_unknown_route(self, client, db_session):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json == {"error": "Route not found"}
