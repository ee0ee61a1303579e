# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/instasupply/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use "flask db upgrade" for migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Supplier inspection/bootstrap:
# - python -m flask suppliers list
#   List all suppliers with verification and active status.
# - python -m flask suppliers create --name "Acme Supply" --email acme@example.com --password "secret1"
#   Create a pre-verified supplier (no OTP round trip; prompts if options are omitted).
#
# Maintenance:
# - python -m flask sessions cleanup
#   Delete expired or revoked session tokens past the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Supplier
from .services.auth_service import hash_password, normalize_email, PasswordValidationError, EMAIL_PATTERN
from .services import session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask suppliers create' to add a supplier.")


@click.group('suppliers')
def suppliers_group():
    """Supplier inspection and bootstrap commands."""


@suppliers_group.command('create')
@click.option('--name', prompt=True, help='Business name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_supplier_cli(name, email, password, phone):
    """
    Create a verified supplier account.

    Skips the OTP email: the account can request a sign-in code right away.
    Password must be at least 6 characters.
    """
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        click.echo(f"FAIL Invalid email address: {email}")
        return

    if db.session.query(Supplier).filter_by(email=email).first():
        click.echo(f"FAIL Supplier '{email}' already exists")
        return

    try:
        supplier = Supplier(
            name=name.strip(),
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            is_verified=True,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return

    db.session.add(supplier)
    db.session.commit()

    click.echo(f"PASS Created supplier: {supplier.name} ({supplier.email})")
    click.echo(f"     Supplier ID: {supplier.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@suppliers_group.command('list')
@with_appcontext
def list_suppliers():
    """List all suppliers."""
    suppliers = db.session.query(Supplier).order_by(Supplier.id.asc()).all()

    if not suppliers:
        click.echo("No suppliers found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Email':<35} {'Verified':<9} {'Active'}")
    click.echo("="*90)

    for supplier in suppliers:
        verified_str = "Yes" if supplier.is_verified else "No"
        active_str = "Yes" if supplier.is_active else "No"
        click.echo(f"{supplier.id:<5} {supplier.name:<30} {supplier.email:<35} {verified_str:<9} {active_str}")

    click.echo("="*90 + "\n")


@click.group('sessions')
def sessions_group():
    """Session token maintenance."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(suppliers_group)
    app.cli.add_command(sessions_group)
