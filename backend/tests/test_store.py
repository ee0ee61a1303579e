# Overview: Pytest coverage for store opening hours and the running store rating.

import pytest

from instasupply.extensions import db
from instasupply.models import StoreSettings
from instasupply.services import store_service


class TestStoreSettings:
    def test_first_read_creates_defaults(self, client, headers_a, supplier_a):
        resp = client.get("/api/store/settings", headers=headers_a)

        assert resp.status_code == 200
        settings = resp.json["settings"]
        assert settings["is_open"] is True
        assert settings["opening_time"] == "09:00"
        assert settings["closing_time"] == "21:00"
        assert settings["rating"] == 0
        assert settings["rating_count"] == 0

        again = client.get("/api/store/settings", headers=headers_a).json["settings"]
        assert again["id"] == settings["id"]
        assert db.session.query(StoreSettings).filter_by(supplier_id=supplier_a.id).count() == 1

    def test_partial_update(self, client, headers_a):
        resp = client.put("/api/store/settings", json={"is_open": False, "opening_time": "07:30"},
                          headers=headers_a)

        assert resp.status_code == 200
        settings = resp.json["settings"]
        assert settings["is_open"] is False
        assert settings["opening_time"] == "07:30"
        assert settings["closing_time"] == "21:00"

    @pytest.mark.parametrize("patch", [
        {"opening_time": "25:00"},
        {"closing_time": "9am"},
        {"closing_time": 2100},
        {"is_open": "maybe"},
    ])
    def test_invalid_values(self, client, headers_a, patch):
        resp = client.put("/api/store/settings", json=patch, headers=headers_a)
        assert resp.status_code == 400

    def test_settings_are_per_supplier(self, client, headers_a, headers_b):
        client.put("/api/store/settings", json={"closing_time": "18:00"}, headers=headers_a)

        other = client.get("/api/store/settings", headers=headers_b).json["settings"]
        assert other["closing_time"] == "21:00"

    def test_get_or_create_returns_the_same_row(self, supplier_a):
        first = store_service.get_or_create_settings(supplier_a.id)
        second = store_service.get_or_create_settings(supplier_a.id)
        db.session.commit()

        assert first is second
        assert db.session.query(StoreSettings).count() == 1


class TestStoreRating:
    def test_running_average(self, client, headers_a):
        client.post("/api/store/rating", json={"rating": 4}, headers=headers_a)

        resp = client.post("/api/store/rating", json={"rating": 5}, headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["rating"] == 4.5
        assert resp.json["rating_count"] == 2

    @pytest.mark.parametrize("rating", [0, 6, None, "abc", 3.5])
    def test_invalid_rating(self, client, headers_a, rating):
        resp = client.post("/api/store/rating", json={"rating": rating}, headers=headers_a)

        assert resp.status_code == 400
        assert db.session.query(StoreSettings).count() == 0

    def test_reviews_and_direct_ratings_share_the_counter(self, client, headers_a, supplier_a):
        client.post("/api/reviews", json={"supplier_id": supplier_a.id, "rating": 2, "customer_name": "Dana"})

        resp = client.post("/api/store/rating", json={"rating": 4}, headers=headers_a)

        assert resp.json["rating"] == 3.0
        assert resp.json["rating_count"] == 2
