# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Supplier Authentication Service

WHY: Suppliers sign in with a short-lived emailed code instead of typing a
password on every device. The password is still collected at registration
and kept as a bcrypt hash.

FLOW:
1. register()     -> supplier row + OTP emailed (delivery failure tolerated)
2. request_otp()  -> fresh OTP for an existing supplier (delivery must succeed)
3. verify_otp()   -> OTP cleared, supplier verified, session token issued
4. change_email() -> only while an OTP is still pending

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- OTPs stored as SHA-256 and valid for OTP_TTL_SECONDS (default 60)
- Session tokens managed separately (see session_service.py)
"""

import hashlib
import hmac
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Supplier, SessionToken
from ..validation import ValidationError, NotFoundError, ConflictError
from . import email_service, session_service
from instasupply.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,3})+$")

PROFILE_FIELDS = ("name", "phone", "website", "about_us", "profile_image_url")
ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


class OTPError(ValidationError):
    """Wrong or expired one-time password."""
    pass


@dataclass
class LoginResult:
    supplier: Supplier
    session: SessionToken
    token: str


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def generate_otp() -> str:
    """4-digit code, 1000-9999."""
    return str(secrets.randbelow(9000) + 1000)


def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode('utf-8')).hexdigest()


def _issue_otp(supplier: Supplier) -> str:
    otp = generate_otp()
    supplier.otp_hash = hash_otp(otp)
    supplier.otp_expires_at = utcnow() + timedelta(seconds=current_app.config.get("OTP_TTL_SECONDS", 60))
    return otp


def get_supplier_by_email(email: str) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(email=normalize_email(email)).first()
    if not supplier:
        raise NotFoundError("User not found with this email")
    return supplier


def register(name: str, email: str, password: str, phone: str | None = None) -> Supplier:
    """
    Create a supplier and email the first OTP.

    A failed email does not fail registration; the supplier can ask for a
    new code with request_otp().
    """
    if not name or not email or not password:
        raise ValidationError("Please provide name, email, and password")

    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please provide a valid email address")

    if db.session.query(Supplier).filter_by(email=email).first():
        raise ConflictError("User already exists with this email")

    supplier = Supplier(
        name=name.strip(),
        email=email,
        phone=(phone or "").strip() or None,
        password_hash=hash_password(password),
        is_verified=False,
    )
    otp = _issue_otp(supplier)

    db.session.add(supplier)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already exists. Please use a different email.")

    if not email_service.send_otp_email(supplier.email, otp):
        current_app.logger.warning("Registered supplier %s without a delivered OTP", supplier.email)

    return supplier


def request_otp(email: str) -> None:
    """
    Issue a new OTP for an existing supplier.

    Raises EmailDeliveryError when the code could not be sent; the new code
    is stored regardless so a late-arriving email still works.
    """
    if not email:
        raise ValidationError("Please provide an email address")

    supplier = get_supplier_by_email(email)
    otp = _issue_otp(supplier)
    db.session.commit()

    if not email_service.send_otp_email(supplier.email, otp):
        raise email_service.EmailDeliveryError(
            "Failed to send OTP email. Please check your email settings."
        )


def verify_otp(
    email: str,
    otp: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> LoginResult:
    """
    Exchange a valid OTP for a session token.

    Order of checks: unknown email (404), wrong code, expired code.
    """
    if not email or not otp:
        raise ValidationError("Please provide email and OTP")

    supplier = get_supplier_by_email(email)

    if not supplier.otp_hash or not hmac.compare_digest(supplier.otp_hash, hash_otp(str(otp).strip())):
        raise OTPError("Invalid OTP")

    if not supplier.otp_expires_at or utcnow() > supplier.otp_expires_at:
        raise OTPError("OTP has expired. Please request a new OTP.")

    now = utcnow()
    supplier.otp_hash = None
    supplier.otp_expires_at = None
    supplier.is_verified = True
    supplier.last_login_at = now
    db.session.commit()

    session, token = session_service.create_session(
        supplier_id=supplier.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    current_app.logger.info("Supplier %s logged in", supplier.email)
    return LoginResult(supplier=supplier, session=session, token=token)


def change_email(old_email: str, new_email: str) -> Supplier:
    """
    Correct a mistyped address before the first verification.

    Only allowed while an OTP is pending; sends a fresh OTP to the new address.
    """
    if not old_email or not new_email:
        raise ValidationError("Please provide both old email and new email")

    new_email = normalize_email(new_email)
    if not EMAIL_PATTERN.match(new_email):
        raise ValidationError("Please provide a valid email address")

    supplier = db.session.query(Supplier).filter_by(email=normalize_email(old_email)).first()
    if not supplier:
        raise NotFoundError("User not found with this email. Please register first.")

    if not supplier.otp_hash:
        raise ValidationError("Email cannot be changed. Account is already verified.")

    existing = db.session.query(Supplier).filter_by(email=new_email).first()
    if existing and existing.id != supplier.id:
        raise ConflictError("New email is already registered. Please use a different email.")

    supplier.email = new_email
    otp = _issue_otp(supplier)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("New email is already registered. Please use a different email.")

    # A verified supplier holding a fresh OTP may also land here
    session_service.revoke_all_supplier_sessions(supplier.id, reason="Sign-in email changed")

    if not email_service.send_otp_email(supplier.email, otp):
        raise email_service.EmailDeliveryError(
            "Failed to send OTP to new email. Please check your email settings."
        )

    current_app.logger.info("Supplier %s changed sign-in email before verification", supplier.id)
    return supplier


def update_profile(supplier: Supplier, payload: dict) -> Supplier:
    """Partial profile update. Email and password are not editable here."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    for field in PROFILE_FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")
        value = (value or "").strip() or None
        if field == "name" and not value:
            raise ValidationError("name cannot be blank")
        setattr(supplier, field, value)

    address = payload.get("address")
    if address is not None:
        if not isinstance(address, dict):
            raise ValidationError("address must be an object")
        for key in ADDRESS_FIELDS:
            if key in address:
                raw = address[key]
                setattr(supplier, f"address_{key}", (str(raw).strip() or None) if raw is not None else None)

    db.session.commit()
    return supplier
