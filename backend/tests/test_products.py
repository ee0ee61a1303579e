# Overview: Pytest coverage for the product catalog endpoints.

"""
Product Catalog Tests

Verifies validation, filtering, sorting and supplier isolation for /api/products.
"""

import pytest
from sqlalchemy import select

from instasupply.extensions import db
from instasupply.models import Campaign, Product, OrderItem, campaign_products
from instasupply.services import campaign_service, order_service


def _names(resp) -> list[str]:
    return [p["name"] for p in resp.json["products"]]


class TestCreateProduct:
    def test_created_with_defaults(self, client, headers_a):
        resp = client.post("/api/products", json={
            "name": "Claw Hammer",
            "category": "Tools",
            "price_cents": 1599,
            "stock": 25,
        }, headers=headers_a)

        assert resp.status_code == 201
        product = resp.json["product"]
        assert product["low_stock_threshold"] == 10
        assert product["sold_quantity"] == 0
        assert product["stock_status"] == "inStock"
        assert product["unit"] == "Unit"
        assert product["delivery_options"] == {"available_for_delivery": True, "available_for_pickup": True}

    def test_missing_required_fields(self, client, headers_a):
        resp = client.post("/api/products", json={"name": "Nameless"}, headers=headers_a)

        assert resp.status_code == 400
        assert "Missing required fields" in resp.json["error"]

    @pytest.mark.parametrize("patch", [
        {"category": "Snacks"},
        {"price_cents": -1},
        {"stock": -5},
        {"discount_percent": 101},
        {"price_cents": "12.50"},
        {"sold_quantity": 100},
    ])
    def test_invalid_values(self, client, headers_a, patch):
        payload = {"name": "Widget", "category": "Hardware", "price_cents": 100, "stock": 1}
        payload.update(patch)

        resp = client.post("/api/products", json=payload, headers=headers_a)

        assert resp.status_code == 400

    def test_nested_delivery_options(self, client, headers_a):
        resp = client.post("/api/products", json={
            "name": "Rebar",
            "category": "Building Materials",
            "price_cents": 800,
            "stock": 3,
            "delivery_options": {"available_for_pickup": False},
        }, headers=headers_a)

        assert resp.status_code == 201
        assert resp.json["product"]["delivery_options"]["available_for_pickup"] is False


class TestListProducts:
    @pytest.fixture
    def catalog(self, supplier_a, supplier_b, make_product):
        make_product(supplier_a, name="Copper Pipe", category="Plumbing", price_cents=1200,
                     stock=50, low_stock_threshold=5, sold_quantity=3, description="Half inch")
        make_product(supplier_a, name="PVC Elbow", category="Plumbing", price_cents=150,
                     stock=2, low_stock_threshold=5, sold_quantity=40)
        make_product(supplier_a, name="Wire Spool", category="Electrical", price_cents=4500,
                     stock=0, low_stock_threshold=5, sold_quantity=12)
        make_product(supplier_a, name="Retired Valve", category="Plumbing", price_cents=999,
                     stock=10, is_active=False)
        make_product(supplier_b, name="Foreign Pipe", category="Plumbing", price_cents=100, stock=10)

    def test_only_own_active_products(self, client, headers_a, catalog):
        resp = client.get("/api/products", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["total"] == 3
        assert "Foreign Pipe" not in _names(resp)
        assert "Retired Valve" not in _names(resp)

    def test_category_and_search(self, client, headers_a, catalog):
        assert _names(client.get("/api/products?category=Electrical", headers=headers_a)) == ["Wire Spool"]
        assert _names(client.get("/api/products?search=half", headers=headers_a)) == ["Copper Pipe"]
        assert client.get("/api/products?category=All", headers=headers_a).json["total"] == 3

    def test_search_wildcards_match_literally(self, client, headers_a, supplier_a, make_product):
        make_product(supplier_a, name="100% Cotton Rag")
        make_product(supplier_a, name="100 Grit Paper")
        make_product(supplier_a, name="Drop_Cloth")
        make_product(supplier_a, name="Drop Sheet")

        resp = client.get("/api/products", query_string={"search": "100%"}, headers=headers_a)
        assert _names(resp) == ["100% Cotton Rag"]

        resp = client.get("/api/products", query_string={"search": "drop_"}, headers=headers_a)
        assert _names(resp) == ["Drop_Cloth"]

    def test_price_bounds(self, client, headers_a, catalog):
        resp = client.get("/api/products?min_price_cents=200&max_price_cents=2000", headers=headers_a)
        assert _names(resp) == ["Copper Pipe"]

    def test_stock_status_filters_are_or_combined(self, client, headers_a, catalog):
        resp = client.get("/api/products?stock_status=lowStock,outOfStock&sort_by=price-low-to-high",
                          headers=headers_a)
        assert _names(resp) == ["PVC Elbow", "Wire Spool"]

        resp = client.get("/api/products?stock_status=inStock", headers=headers_a)
        assert _names(resp) == ["Copper Pipe"]

    def test_sorts(self, client, headers_a, catalog):
        best = client.get("/api/products?sort_by=best-selling", headers=headers_a)
        assert _names(best) == ["PVC Elbow", "Wire Spool", "Copper Pipe"]

        expensive = client.get("/api/products?sort_by=price-high-to-low", headers=headers_a)
        assert _names(expensive) == ["Wire Spool", "Copper Pipe", "PVC Elbow"]

    def test_stock_status_labels(self, client, headers_a, catalog):
        statuses = {p["name"]: p["stock_status"] for p in client.get("/api/products", headers=headers_a).json["products"]}
        assert statuses == {"Copper Pipe": "inStock", "PVC Elbow": "lowStock", "Wire Spool": "outOfStock"}

    def test_bad_filters(self, client, headers_a, catalog):
        assert client.get("/api/products?sort_by=random", headers=headers_a).status_code == 400
        assert client.get("/api/products?stock_status=plenty", headers=headers_a).status_code == 400

    def test_pagination(self, client, headers_a, catalog):
        resp = client.get("/api/products?page=2&limit=2", headers=headers_a)
        assert resp.json["count"] == 1
        assert resp.json["pages"] == 2

    def test_categories(self, client, headers_a):
        resp = client.get("/api/products/categories", headers=headers_a)
        assert resp.json["categories"] == [
            "Building Materials", "Tools", "Electrical", "Plumbing", "Hardware", "Other",
        ]


class TestProductDetailUpdateDelete:
    def test_get_and_update(self, client, headers_a, supplier_a, make_product):
        product = make_product(supplier_a, stock=4, low_stock_threshold=5)

        detail = client.get(f"/api/products/{product.id}", headers=headers_a)
        assert detail.json["product"]["stock_status"] == "lowStock"

        resp = client.put(f"/api/products/{product.id}", json={"stock": 40, "price_cents": 2500}, headers=headers_a)
        assert resp.status_code == 200
        assert resp.json["product"]["stock"] == 40
        assert resp.json["product"]["stock_status"] == "inStock"

    def test_foreign_product_is_404(self, client, headers_b, supplier_a, make_product):
        product = make_product(supplier_a)

        assert client.get(f"/api/products/{product.id}", headers=headers_b).status_code == 404
        assert client.put(f"/api/products/{product.id}", json={"stock": 1}, headers=headers_b).status_code == 404
        assert client.delete(f"/api/products/{product.id}", headers=headers_b).status_code == 404

    def test_delete_keeps_order_snapshot(self, client, headers_a, supplier_a, make_product):
        product = make_product(supplier_a, name="Level", price_cents=700, stock=5)
        product_id = product.id
        order = order_service.place_order(supplier_a.id, {"items": [{"product_id": product_id, "quantity": 1}]})
        order_id = order.id

        resp = client.delete(f"/api/products/{product_id}", headers=headers_a)

        assert resp.status_code == 200
        assert db.session.get(Product, product_id) is None
        item = db.session.query(OrderItem).filter_by(order_id=order_id).one()
        assert item.product_id is None
        assert item.name == "Level"
        assert item.unit_price_cents == 700

    def test_delete_drops_product_from_campaigns(self, client, headers_a, supplier_a, make_product):
        level = make_product(supplier_a, name="Level")
        square = make_product(supplier_a, name="Square")
        level_id = level.id
        campaign = campaign_service.create_campaign(supplier_a.id, {
            "name": "Layout Tools",
            "products": [level_id, square.id],
            "daily_budget_cents": 500,
        })
        campaign_id = campaign.id

        assert client.delete(f"/api/products/{level_id}", headers=headers_a).status_code == 200

        campaign = db.session.get(Campaign, campaign_id)
        assert [p.name for p in campaign.products] == ["Square"]
        links = db.session.execute(select(campaign_products.c.product_id)).scalars().all()
        assert links == [square.id]
