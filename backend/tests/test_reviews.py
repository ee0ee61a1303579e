# Overview: Pytest coverage for public review posting, replies, hiding and rating aggregates.

"""
Review Tests

Posting is public; listing, replying and hiding are supplier-scoped.
Every posted review also moves the store's running rating.
"""

import pytest

from instasupply.extensions import db
from instasupply.models import Review, StoreSettings, Notification
from instasupply.services import review_service, order_service


def _payload(supplier, rating=5, **extra):
    payload = {"supplier_id": supplier.id, "rating": rating, "customer_name": "Dana Builder"}
    payload.update(extra)
    return payload


@pytest.fixture
def reviews(supplier_a, supplier_b):
    """Four visible reviews for supplier A (5, 4, 4, 1) and one for B."""
    created = [
        review_service.create_review(_payload(supplier_a, rating, customer_name=name))
        for rating, name in ((5, "Ann"), (4, "Ben"), (4, "Cal"), (1, "Dee"))
    ]
    review_service.create_review(_payload(supplier_b, 2, customer_name="Eve"))
    return created


class TestCreateReview:
    def test_public_post_moves_store_rating(self, client, supplier_a):
        assert client.post("/api/reviews", json=_payload(supplier_a, 5)).status_code == 201

        resp = client.post("/api/reviews", json=_payload(supplier_a, 2, comment="Late delivery"))

        assert resp.status_code == 201
        review = resp.json["review"]
        assert review["review_text"] == "Late delivery"
        assert review["reply"] is None
        assert review["is_visible"] is True
        settings = db.session.query(StoreSettings).filter_by(supplier_id=supplier_a.id).one()
        assert settings.rating_count == 2
        assert settings.total_ratings == 7
        assert settings.rating == pytest.approx(3.5)

    def test_notifies_supplier(self, client, supplier_a):
        resp = client.post("/api/reviews", json=_payload(supplier_a, 4))

        notification = db.session.query(Notification).one()
        assert notification.supplier_id == supplier_a.id
        assert notification.type == "Review"
        assert notification.icon == "review"
        assert notification.related_id == resp.json["review"]["id"]
        assert notification.message == "Dana Builder left a 4-star review."

    @pytest.mark.parametrize("override", [
        {"rating": 0},
        {"rating": 6},
        {"rating": "4.5"},
        {"rating": None},
        {"customer_name": ""},
        {"images": "https://cdn.example.com/a.jpg"},
        {"review_text": 42},
    ])
    def test_invalid_input(self, client, supplier_a, override):
        resp = client.post("/api/reviews", json={**_payload(supplier_a), **override})

        assert resp.status_code == 400
        assert db.session.query(Review).count() == 0
        assert db.session.query(StoreSettings).count() == 0

    def test_unknown_supplier(self, client, db_session):
        resp = client.post("/api/reviews", json={"supplier_id": 9999, "rating": 5, "customer_name": "Dana"})
        assert resp.status_code == 404

    def test_order_must_belong_to_supplier(self, client, supplier_a, supplier_b, make_product):
        product = make_product(supplier_b, stock=5)
        order = order_service.place_order(supplier_b.id, {"items": [{"product_id": product.id, "quantity": 1}]})

        assert client.post("/api/reviews", json=_payload(supplier_a, order_id=order.id)).status_code == 400

        resp = client.post("/api/reviews", json=_payload(supplier_b, order_id=order.id))
        assert resp.status_code == 201
        assert resp.json["review"]["order_id"] == order.id

    def test_deleting_the_order_keeps_the_review(self, supplier_a, make_product):
        product = make_product(supplier_a, stock=5)
        order = order_service.place_order(supplier_a.id, {"items": [{"product_id": product.id, "quantity": 1}]})
        review = review_service.create_review(_payload(supplier_a, order_id=order.id))

        order_service.delete_order(supplier_a.id, order.id)

        kept = db.session.get(Review, review.id)
        assert kept is not None
        assert kept.order_id is None


class TestListReviews:
    def test_only_own_visible_reviews(self, client, headers_a, reviews):
        resp = client.get("/api/reviews", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["total"] == 4
        assert "Eve" not in [r["customer_name"] for r in resp.json["reviews"]]
        assert resp.json["rating_distribution"] == {"5": 25, "4": 50, "3": 0, "2": 0, "1": 25}

    def test_rating_filter_keeps_full_distribution(self, client, headers_a, reviews):
        resp = client.get("/api/reviews?rating=4", headers=headers_a)

        assert [r["customer_name"] for r in resp.json["reviews"]] == ["Cal", "Ben"]
        assert resp.json["rating_distribution"]["5"] == 25
        assert client.get("/api/reviews?rating=all", headers=headers_a).json["total"] == 4

    def test_sorts(self, client, headers_a, reviews):
        def ratings(sort_by):
            resp = client.get(f"/api/reviews?sort_by={sort_by}", headers=headers_a)
            return [r["rating"] for r in resp.json["reviews"]]

        assert ratings("highest") == [5, 4, 4, 1]
        assert ratings("lowest") == [1, 4, 4, 5]
        assert ratings("oldest") == [5, 4, 4, 1]
        assert ratings("recent") == [1, 4, 4, 5]

    @pytest.mark.parametrize("query", ["sort_by=best", "rating=9", "rating=x"])
    def test_invalid_query(self, client, headers_a, reviews, query):
        assert client.get(f"/api/reviews?{query}", headers=headers_a).status_code == 400

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/reviews").status_code == 401


class TestReviewSummary:
    def test_empty(self, client, headers_a):
        summary = client.get("/api/reviews/summary", headers=headers_a).json["summary"]

        assert summary["average_rating"] == 0
        assert summary["total_reviews"] == 0
        assert summary["rating_counts"] == {"5": 0, "4": 0, "3": 0, "2": 0, "1": 0}
        assert summary["rating_distribution"] == {"5": 0, "4": 0, "3": 0, "2": 0, "1": 0}

    def test_average_and_counts(self, client, headers_a, reviews):
        summary = client.get("/api/reviews/summary", headers=headers_a).json["summary"]

        assert summary["average_rating"] == 3.5
        assert summary["total_reviews"] == 4
        assert summary["rating_counts"] == {"5": 1, "4": 2, "3": 0, "2": 0, "1": 1}


class TestReplyAndHide:
    def test_reply_defaults_company_name(self, client, headers_a, reviews):
        review_id = reviews[0].id

        resp = client.post(f"/api/reviews/{review_id}/reply", json={"message": "Thanks!"}, headers=headers_a)

        assert resp.status_code == 200
        reply = resp.json["review"]["reply"]
        assert reply["company_name"] == "Acme Building Supply"
        assert reply["reply_text"] == "Thanks!"
        assert reply["created_at"] is not None
        assert reply["updated_at"] is None

        resp = client.post(f"/api/reviews/{review_id}/reply", json={
            "reply_text": "Thanks again",
            "company_name": "Acme Co",
        }, headers=headers_a)
        reply = resp.json["review"]["reply"]
        assert reply["company_name"] == "Acme Co"
        assert reply["reply_text"] == "Thanks again"
        assert reply["updated_at"] is not None

    def test_blank_reply_rejected(self, client, headers_a, reviews):
        resp = client.post(f"/api/reviews/{reviews[0].id}/reply", json={"reply_text": "  "}, headers=headers_a)
        assert resp.status_code == 400

    def test_other_suppliers_review_is_not_found(self, client, headers_b, reviews):
        assert client.post(f"/api/reviews/{reviews[0].id}/reply", json={"message": "Hi"},
                           headers=headers_b).status_code == 404
        assert client.delete(f"/api/reviews/{reviews[0].id}", headers=headers_b).status_code == 404

    def test_hidden_review_leaves_lists_but_not_store_rating(self, client, headers_a, supplier_a, reviews):
        resp = client.delete(f"/api/reviews/{reviews[3].id}", headers=headers_a)

        assert resp.status_code == 200
        assert client.get("/api/reviews", headers=headers_a).json["total"] == 3
        summary = client.get("/api/reviews/summary", headers=headers_a).json["summary"]
        assert summary["average_rating"] == 4.3
        assert db.session.get(Review, reviews[3].id).is_visible is False
        settings = db.session.query(StoreSettings).filter_by(supplier_id=supplier_a.id).one()
        assert settings.rating_count == 4
