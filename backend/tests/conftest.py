"""
Pytest fixtures for InstaSupply backend tests.

Provides test database setup, two isolated suppliers, product factories,
captured OTP emails, and test client.
"""

import pytest
from instasupply import create_app
from instasupply.extensions import db
from instasupply.models import Supplier, Product
from instasupply.services import email_service
from instasupply.services.session_service import create_session


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MAIL_HOST': None,
        'ENFORCE_ORDER_TRANSITIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        app.config['ENFORCE_ORDER_TRANSITIONS'] = False


@pytest.fixture(scope='function')
def sent_emails(monkeypatch):
    """Capture OTP emails instead of talking to SMTP. Returns list of (to, otp)."""
    outbox = []

    def fake_send(to_address, otp):
        outbox.append((to_address, otp))
        return True

    monkeypatch.setattr(email_service, "send_otp_email", fake_send)
    return outbox


@pytest.fixture(scope='function')
def failing_email(monkeypatch):
    """Every OTP email fails to send."""
    monkeypatch.setattr(email_service, "send_otp_email", lambda to_address, otp: False)


def make_supplier(db_session, email: str, name: str = "Supplier") -> Supplier:
    # Fixture suppliers never log in by password; skip the bcrypt cost
    supplier = Supplier(name=name, email=email, password_hash="x", is_verified=True)
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def supplier_a(db_session):
    """Supplier A (primary actor)."""
    return make_supplier(db_session, "supplier_a@acme.com", "Acme Building Supply")


@pytest.fixture(scope='function')
def supplier_b(db_session):
    """Supplier B (must never see A's data)."""
    return make_supplier(db_session, "supplier_b@beta.com", "Beta Hardware")


@pytest.fixture(scope='function')
def token_a(supplier_a):
    _, token = create_session(supplier_a.id)
    return token


@pytest.fixture(scope='function')
def token_b(supplier_b):
    _, token = create_session(supplier_b.id)
    return token


@pytest.fixture(scope='function')
def headers_a(token_a):
    return auth_headers(token_a)


@pytest.fixture(scope='function')
def headers_b(token_b):
    return auth_headers(token_b)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(supplier, name=..., price_cents=..., stock=..., ...)."""
    def _make(supplier, name="Product", price_cents=1000, stock=10, low_stock_threshold=3, **kwargs):
        product = Product(
            supplier_id=supplier.id,
            name=name,
            category=kwargs.pop("category", "Tools"),
            price_cents=price_cents,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
            sold_quantity=kwargs.pop("sold_quantity", 0),
            **kwargs,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
