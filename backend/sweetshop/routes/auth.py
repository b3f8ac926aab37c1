# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/sweetshop/routes/auth.py
"""
Authentication API routes

- POST /api/auth/register  self-registration (role defaults to "user")
- POST /api/auth/login     username-or-email + password -> identity token
- GET  /api/auth/me        profile of the token's user, read fresh from the DB
"""

from flask import Blueprint, request, current_app, g

from ..services import auth_service
from ..errors import InvalidCredentials
from ..validation import validate_registration, validate_login
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

USER_REGISTERED = "User registered successfully"


@auth_bp.post("/register")
def register_route():
    """
    Register a new user.

    Request body: {"username", "email", "password", "role"?}
    """
    data = validate_registration(request.get_json(silent=True))

    user = auth_service.register_user(
        username=data["username"],
        email=data["email"],
        password=data["password"],
        role=data["role"],
    )
    current_app.logger.info("Registered user id=%s username=%r", user["id"], user["username"])

    return {"message": USER_REGISTERED, "user": user}, 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue an identity token.

    Token must be included in Authorization header for protected routes.
    Unknown account and wrong password get the same 401.
    """
    identifier, password = validate_login(request.get_json(silent=True))

    try:
        result = auth_service.login(identifier, password)
    except InvalidCredentials:
        current_app.logger.warning("Failed login for %r from %s", identifier, request.remote_addr)
        raise

    current_app.logger.info("User id=%s logged in", result["user"]["id"])
    return result, 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user's public profile."""
    return auth_service.get_current_user(g.current_user.id), 200
