# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid supplier session.

    Sets the following Flask g attributes:
    - g.current_supplier: The authenticated Supplier object
    - g.supplier_id: Its id; every query in the route is scoped by it
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, revoked or expired token
    - Supplier account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Not authorized to access this route"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_supplier = context.supplier
        g.supplier_id = context.supplier.id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
