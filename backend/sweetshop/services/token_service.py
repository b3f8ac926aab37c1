# Overview: Service-layer operations for identity tokens; issues and verifies signed JWTs.

"""
Identity Token Service

Tokens are self-contained HS256 JWTs carrying the user's id, username,
email and role. Nothing is stored server-side: a token is valid until it
expires (TOKEN_LIFETIME after issuance) and there is no revocation.

Claims are trusted as-is for the request that presents them, so a role
change only takes effect once the user logs in again.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import jwt as pyjwt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from ..errors import InvalidToken
from ..models import User
from ..models.auth import ROLE_ADMIN


# Fixed absolute lifetime; there is no refresh flow
TOKEN_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True)
class Identity:
    """Verified claims attached to a request by the authentication gate."""
    id: int
    username: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def issue_token(user: User) -> str:
    """Sign a 24-hour token for the given user with the app's JWT secret."""
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        },
        expires_delta=TOKEN_LIFETIME,
    )


def verify_token(token: str) -> Identity:
    """
    Validate signature and expiry and return the embedded identity.

    Raises InvalidToken for anything that is not a well-formed, unexpired,
    correctly-signed token with the expected claims.
    """
    if not token:
        raise InvalidToken()

    try:
        claims = decode_token(token)
    except (pyjwt.PyJWTError, JWTExtendedException, ValueError, TypeError):
        raise InvalidToken()

    try:
        return Identity(
            id=int(claims["id"]),
            username=str(claims["username"]),
            email=str(claims["email"]),
            role=str(claims["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()
