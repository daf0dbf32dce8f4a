# Overview: Service-layer operations for accounts and credentials; encapsulates business logic and database work.

"""
Account and credential service.

Passwords are hashed with bcrypt (cost factor 12) and must pass a strength
check on registration and reset. Login identifiers are either an email
address or a mobile number; a single lookup matches both columns.
"""

import bcrypt
import hashlib
import re
from sqlalchemy import or_

from ..extensions import db
from ..models import User
from .identifier_service import new_unique_id


LOGIN_TYPES = ("email", "mobile")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class DuplicateUserError(Exception):
    """Raised when the email or mobile number is already registered."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def hash_secret(value: str) -> str:
    """SHA-256 digest for high-entropy one-time secrets (OTP codes, reset tokens)."""
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


def normalize_login_id(login_id: str) -> str:
    """Emails are stored lowercased; mobiles are kept as typed."""
    login_id = login_id.strip()
    if "@" in login_id:
        return login_id.lower()
    return login_id


def find_user_by_login_id(login_id: str) -> User | None:
    """Match the identifier against both email and mobile."""
    login_id = normalize_login_id(login_id)
    return db.session.query(User).filter(
        or_(User.email == login_id, User.mobile == login_id)
    ).first()


def build_profile(user: User, login_type: str, login_id: str) -> dict:
    """
    Profile embedded in tokens and returned as userData.

    Carries identity plus how this login happened; never the password hash.
    """
    profile = user.to_dict()
    profile["login_type"] = login_type
    profile["login_id"] = login_id
    return profile


def create_user(
    first_name: str,
    last_name: str,
    email: str,
    mobile: str,
    password: str,
) -> User:
    """
    Register a new cafe account.

    Raises:
        PasswordValidationError: If password doesn't meet requirements
        DuplicateUserError: If email or mobile is already registered
    """
    email = normalize_login_id(email)
    existing = db.session.query(User).filter(
        or_(User.email == email, User.mobile == mobile)
    ).first()
    if existing:
        raise DuplicateUserError("Email or mobile already exists")

    password_hash = hash_password(password)

    user = User(
        unique_id=new_unique_id(),
        first_name=first_name,
        last_name=last_name,
        email=email,
        mobile=mobile,
        password_hash=password_hash,
    )
    db.session.add(user)
    db.session.commit()
    return user


def set_password(user: User, new_password: str) -> None:
    """Replace the password hash. Caller commits."""
    user.password_hash = hash_password(new_password)
