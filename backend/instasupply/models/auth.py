from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z


class Supplier(db.Model):
    """
    Supplier accounts: the only authenticated actor type.

    A supplier owns its products, orders and notifications. Sign-in is by
    emailed one-time password; the OTP is stored hashed and cleared once used.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_suppliers_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Business name
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(32), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # Pending OTP (SHA-256) and its expiry; both null once verified
    otp_hash = db.Column(db.String(64), nullable=True)
    otp_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Profile (image itself lives on the CDN)
    profile_image_url = db.Column(db.String(512), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    about_us = db.Column(db.Text, nullable=True)
    address_street = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(120), nullable=True)
    address_state = db.Column(db.String(120), nullable=True)
    address_zip_code = db.Column(db.String(32), nullable=True)
    address_country = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "profile_image_url": self.profile_image_url,
            "website": self.website,
            "about_us": self.about_us,
            "address": {
                "street": self.address_street,
                "city": self.address_city,
                "state": self.address_state,
                "zip_code": self.address_zip_code,
                "country": self.address_country,
            },
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session tokens issued after OTP verification.

    Only the SHA-256 of the token is stored; the plaintext goes to the client once.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    # Client context
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
