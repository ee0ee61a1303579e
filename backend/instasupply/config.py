# backend/instasupply/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/instasupply.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///instasupply.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # OTP sign-in: 4-digit code, valid for one minute
    OTP_TTL_SECONDS = int(os.environ.get("OTP_TTL_SECONDS", "60"))

    # Bearer session lifetime (7 days)
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "168"))

    # SMTP relay for OTP emails. Without MAIL_HOST no email is sent.
    MAIL_HOST = os.environ.get("MAIL_HOST")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "InstaSupply <no-reply@instasupply.local>")

    # Off by default: any status may follow any status
    ENFORCE_ORDER_TRANSITIONS = _env_bool("ENFORCE_ORDER_TRANSITIONS", False)

    # Charged to a campaign per recorded click ($0.25)
    CAMPAIGN_COST_PER_CLICK_CENTS = int(os.environ.get("CAMPAIGN_COST_PER_CLICK_CENTS", "25"))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
        if origin.strip()
    }
