# Overview: Request gates for API routes (authentication and admin role).

from functools import wraps
from flask import request, g, current_app

from .errors import Forbidden, InvalidToken, Unauthenticated
from .services import token_service


TOKEN_REQUIRED = "Access token required"
AUTH_REQUIRED = "Authentication required"
ADMIN_REQUIRED = "Admin access required"


def _is_authenticated() -> bool:
    return getattr(g, 'current_user', None) is not None


def extract_bearer_token(auth_header: str | None) -> str | None:
    """
    Return the token part of an Authorization header.

    The token is the second whitespace-separated part, so "", "Bearer" and
    a bare "sometoken" all yield None.
    """
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) < 2:
        return None
    return parts[1]


def authenticate_request() -> None:
    """
    Authentication gate.

    Sets g.current_user to the verified token Identity.

    Raises:
        Unauthenticated (401): no token in the Authorization header
        InvalidToken (403): a token was sent but failed verification
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise Unauthenticated(TOKEN_REQUIRED)

    try:
        g.current_user = token_service.verify_token(token)
    except InvalidToken:
        current_app.logger.warning("Rejected invalid token for %s %s", request.method, request.path)
        raise


def ensure_admin() -> None:
    """
    Admin gate. Must run after authenticate_request.

    Raises:
        Unauthenticated (401): no identity on the request
        Forbidden (403): identity role is not exactly "admin"
    """
    if not _is_authenticated():
        raise Unauthenticated(AUTH_REQUIRED)

    if not g.current_user.is_admin:
        current_app.logger.warning(
            "Admin access denied for user_id=%s on %s %s",
            g.current_user.id, request.method, request.path,
        )
        raise Forbidden(ADMIN_REQUIRED)


def require_auth(f):
    """
    Require a valid identity token.

    Sets the following Flask g attributes:
    - g.current_user: the verified Identity (id, username, email, role)

    Claims come from the token itself; the user row is not re-read.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        authenticate_request()
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to be an admin. Stack under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ensure_admin()
        return f(*args, **kwargs)
    return decorated_function
