# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: Suppliers sign in once by OTP and then carry a bearer token.
Tokens are cryptographically secure, hashed in database, and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout from SESSION_TTL_HOURS (default 7 days)
- Revocable on logout or account deactivation
- Tracks client IP and user agent
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Supplier
from instasupply.time_utils import utcnow


# Revoked/expired rows are kept this long for auditing before cleanup
SESSION_RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """Resolved bearer token: who is calling and through which session."""
    supplier: Supplier
    session: SessionToken


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 168))


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    supplier_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for a supplier.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    supplier = db.session.query(Supplier).filter_by(id=supplier_id).first()
    if not supplier:
        raise ValueError("Supplier not found")
    if not supplier.is_active:
        raise ValueError("Supplier account is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        supplier_id=supplier_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + _session_ttl(),
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - Supplier account is deactivated (is_active=False)
    """
    token_hash = hash_token(token)
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=token_hash,
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    supplier = session.supplier

    # SECURITY: Deactivated accounts lose every session
    if not supplier or not supplier.is_active:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = "Supplier account deactivated"
        db.session.commit()
        return None

    return SessionContext(supplier=supplier, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason

    db.session.commit()
    return True


def revoke_all_supplier_sessions(supplier_id: int, reason: str = "Revoke all sessions") -> int:
    """
    Revoke all active sessions for a supplier.

    Returns count of sessions revoked. Used when the sign-in email changes.
    """
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        supplier_id=supplier_id,
        is_revoked=False
    ).all()

    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason

    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """
    Delete expired and revoked sessions older than the retention window.

    Returns count of sessions deleted.
    """
    now = utcnow()
    cutoff = now - SESSION_RETENTION

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
