"""
CLI command tests (suppliers / sessions groups).
"""

from datetime import timedelta

from instasupply.extensions import db
from instasupply.models import Supplier, SessionToken
from instasupply.services import session_service
from instasupply.time_utils import utcnow


def test_create_and_list_suppliers(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "suppliers", "create",
        "--name", "Cli Supply",
        "--email", "CLI@Example.com",
        "--password", "secret1",
    ])

    assert "PASS Created supplier" in result.output
    supplier = db.session.query(Supplier).filter_by(email="cli@example.com").one()
    assert supplier.is_verified is True

    listing = runner.invoke(args=["suppliers", "list"])
    assert "cli@example.com" in listing.output


def test_create_supplier_rejects_short_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "suppliers", "create", "--name", "X", "--email", "x@example.com", "--password", "123",
    ])

    assert "FAIL Password validation failed" in result.output
    assert db.session.query(Supplier).count() == 0


def test_sessions_cleanup(app, supplier_a):
    session, _ = session_service.create_session(supplier_a.id)
    session.is_revoked = True
    session.created_at = utcnow() - timedelta(days=45)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["sessions", "cleanup"])

    assert "Deleted 1 expired or revoked sessions." in result.output
    assert db.session.query(SessionToken).count() == 0
