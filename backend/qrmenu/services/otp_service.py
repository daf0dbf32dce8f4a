# Overview: One-time-password issue and verification for passwordless login.

import logging
import secrets

from flask import current_app

from ..extensions import db
from ..models import OneTimePassword
from ..time_utils import utcnow
from .auth_service import hash_secret
from .identifier_service import IdFactory, new_unique_id

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def generate_code() -> str:
    """Uniformly random numeric code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def store_otp(
    code: str,
    login_type: str,
    login_id: str,
    id_factory: IdFactory = new_unique_id,
) -> str:
    """
    Persist a pending OTP login and return its correlation id.

    The id goes to the client as the otp_session_id cookie; only the hash of
    the code is stored.
    """
    otp = OneTimePassword(
        session_id=id_factory(),
        otp_hash=hash_secret(code),
        login_type=login_type,
        login_id=login_id,
        expires_at=utcnow() + current_app.config["OTP_TTL"],
    )
    db.session.add(otp)
    db.session.commit()
    return otp.session_id


def verify_otp(session_id: str, code: str) -> OneTimePassword | None:
    """
    Match a submitted code against a live OTP row.

    Expired rows never match, whatever the code. Each wrong code counts
    against the row; after OTP_MAX_ATTEMPTS failures even the right code is
    refused. Matched rows are left in place.
    """
    if not session_id or not code:
        return None

    otp = db.session.query(OneTimePassword).filter(
        OneTimePassword.session_id == session_id,
        OneTimePassword.expires_at > utcnow(),
    ).first()
    if otp is None:
        return None

    max_attempts = current_app.config["OTP_MAX_ATTEMPTS"]
    if otp.failed_attempts >= max_attempts:
        logger.warning("OTP session %s locked after %d failed attempts", session_id, otp.failed_attempts)
        return None

    if not secrets.compare_digest(otp.otp_hash, hash_secret(str(code))):
        db.session.query(OneTimePassword).filter_by(id=otp.id).update(
            {"failed_attempts": OneTimePassword.failed_attempts + 1},
            synchronize_session=False,
        )
        db.session.commit()
        return None

    return otp


def purge_expired(before=None) -> int:
    """Delete OTP rows that expired before the given time (default now)."""
    cutoff = before or utcnow()
    deleted = db.session.query(OneTimePassword).filter(
        OneTimePassword.expires_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
