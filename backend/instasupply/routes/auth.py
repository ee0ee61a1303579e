# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/instasupply/routes/auth.py
"""
Supplier authentication API routes

FLOW:
- POST /register      -> account created, OTP emailed
- POST /request-otp   -> new OTP for an existing account
- POST /verify-otp    -> OTP exchanged for a bearer token
- POST /change-email  -> fix the address while the first OTP is pending
- POST /logout        -> revoke the presented token
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..services import session_service
from ..services.email_service import EmailDeliveryError
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    try:
        data = request.get_json(silent=True) or {}
        supplier = auth_service.register(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            phone=data.get("phone"),
        )
        return jsonify({"message": "OTP sent to email.", "email": supplier.email}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register supplier")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/request-otp")
def request_otp_route():
    try:
        data = request.get_json(silent=True) or {}
        auth_service.request_otp(data.get("email"))
        return jsonify({"message": "OTP sent to email."}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except EmailDeliveryError as e:
        return jsonify({"error": str(e)}), 500
    except Exception:
        current_app.logger.exception("Failed to request OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/verify-otp")
def verify_otp_route():
    """
    Exchange email + OTP for a session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = auth_service.verify_otp(
            email=data.get("email"),
            otp=data.get("otp"),
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify({
            "message": "OTP verified successfully",
            "token": result.token,
            "session": result.session.to_dict(),
            "user": result.supplier.to_dict(),
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/change-email")
def change_email_route():
    try:
        data = request.get_json(silent=True) or {}
        supplier = auth_service.change_email(
            old_email=data.get("old_email", data.get("oldEmail")),
            new_email=data.get("new_email", data.get("newEmail")),
        )
        return jsonify({
            "message": "Email changed successfully. OTP sent to new email.",
            "new_email": supplier.email,
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except EmailDeliveryError as e:
        return jsonify({"error": str(e)}), 500
    except Exception:
        current_app.logger.exception("Failed to change email")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out successfully"}), 200
