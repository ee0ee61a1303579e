# Overview: Service-layer operations for outbound email; OTP delivery over SMTP.

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from flask import current_app


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the SMTP relay."""
    pass


def _build_otp_message(to_address: str, otp: str, ttl_seconds: int) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = "Your InstaSupply verification code"
    message["From"] = current_app.config["MAIL_SENDER"]
    message["To"] = to_address
    message.set_content(
        f"Your verification code is {otp}.\n\n"
        f"It expires in {ttl_seconds} seconds. If you did not request it, ignore this email."
    )
    return message


def send_email(message: EmailMessage) -> None:
    """
    Deliver a prepared message through the configured relay.

    Raises EmailDeliveryError when MAIL_HOST is unset or the relay fails.
    """
    config = current_app.config
    host = config.get("MAIL_HOST")
    if not host:
        raise EmailDeliveryError("MAIL_HOST is not configured")

    try:
        with smtplib.SMTP(host, config.get("MAIL_PORT", 587), timeout=10) as smtp:
            if config.get("MAIL_USE_TLS", True):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(str(exc)) from exc


def send_otp_email(to_address: str, otp: str) -> bool:
    """
    Send a sign-in code. Returns False instead of raising so callers decide
    whether a failed delivery matters.
    """
    ttl = current_app.config.get("OTP_TTL_SECONDS", 60)
    try:
        send_email(_build_otp_message(to_address, otp, ttl))
    except EmailDeliveryError as exc:
        current_app.logger.warning("Failed to send OTP email to %s: %s", to_address, exc)
        return False
    current_app.logger.info("OTP email sent to %s", to_address)
    return True
