# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Registration enforces username/email uniqueness, hashes the password with
bcrypt and persists the user. Login checks the password and issues an
identity token (see token_service.py).

Callers are expected to have validated the shape of the input already
(see validation.validate_registration / validate_login).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS)
- Unknown user and wrong password produce the same InvalidCredentials
  error so the API never reveals whether an account exists
- Only User.to_dict() (no password field) ever leaves this module
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InvalidCredentials, NotFound
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_USER
from .token_service import issue_token


USER_ALREADY_EXISTS = "Username or email already exists"
USER_NOT_FOUND = "User not found"
INVALID_CREDENTIALS = "Invalid credentials"


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash password using bcrypt with a per-password salt."""
    if rounds is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 10)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    a stored value that is not a bcrypt hash at all).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def find_by_username_or_email(username: str, email: str) -> User | None:
    return db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()


def register_user(username: str, email: str, password: str, role: str | None = None) -> dict:
    """
    Create a new user and return its public projection.

    Raises:
        Conflict: If the username or the email is already taken
    """
    if find_by_username_or_email(username, email):
        raise Conflict(USER_ALREADY_EXISTS)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role or ROLE_USER,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same name
        db.session.rollback()
        raise Conflict(USER_ALREADY_EXISTS)

    return user.to_dict()


def authenticate(username_or_email: str, password: str) -> User:
    """
    Look up a user by username or email and check the password.

    Raises InvalidCredentials for an unknown account and for a wrong
    password alike.
    """
    user = find_by_username_or_email(username_or_email, username_or_email)
    if not user:
        raise InvalidCredentials(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        raise InvalidCredentials(INVALID_CREDENTIALS)

    return user


def login(username_or_email: str, password: str) -> dict:
    """Authenticate and return {"token": ..., "user": PublicUser}."""
    user = authenticate(username_or_email, password)
    return {
        "token": issue_token(user),
        "user": user.to_dict(),
    }


def get_current_user(user_id: int) -> dict:
    """Fresh profile data from storage, independent of the token's claims."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound(USER_NOT_FOUND)
    return user.to_dict()
