# Overview: Service-layer operations for forgot/reset password; single-use emailed tokens.

"""
Password reset tokens.

The plaintext token only ever travels in the reset email; the database keeps
its SHA-256 hash. A token is valid for PASSWORD_RESET_TTL and is deleted on
successful use. A failed attempt (unknown or expired token) leaves every row
untouched.
"""

import logging
import secrets

from flask import current_app

from ..extensions import db
from ..models import PasswordResetToken, User
from ..time_utils import utcnow
from . import session_service
from .auth_service import hash_secret, set_password

logger = logging.getLogger(__name__)


class InvalidResetTokenError(Exception):
    """Raised when a reset token is unknown or expired."""
    pass


def create_reset_token(user: User) -> str:
    """
    Issue a new reset token for the user, replacing any earlier ones.

    Returns the plaintext token (64 hex characters).
    """
    token = secrets.token_hex(32)

    db.session.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.unique_id
    ).delete(synchronize_session=False)

    db.session.add(PasswordResetToken(
        user_id=user.unique_id,
        token_hash=hash_secret(token),
        expires_at=utcnow() + current_app.config["PASSWORD_RESET_TTL"],
    ))
    db.session.commit()
    return token


def find_valid_token(token: str) -> PasswordResetToken | None:
    if not token:
        return None
    return db.session.query(PasswordResetToken).filter(
        PasswordResetToken.token_hash == hash_secret(token),
        PasswordResetToken.expires_at > utcnow(),
    ).first()


def reset_password(token: str, new_password: str) -> User:
    """
    Set a new password using a reset token.

    On success the token is deleted and every session of the user is
    revoked, all in one transaction.

    Raises:
        InvalidResetTokenError: If the token is unknown or expired
        PasswordValidationError: If the new password is too weak
    """
    record = find_valid_token(token)
    if record is None:
        raise InvalidResetTokenError("Invalid or expired token")

    user = db.session.query(User).filter_by(unique_id=record.user_id).first()
    if user is None:
        raise InvalidResetTokenError("Invalid or expired token")

    try:
        set_password(user, new_password)
        db.session.delete(record)
        session_service.revoke_all_user_sessions(user.unique_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Password reset for user %s", user.unique_id)
    return user


def purge_expired(before=None) -> int:
    cutoff = before or utcnow()
    deleted = db.session.query(PasswordResetToken).filter(
        PasswordResetToken.expires_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
