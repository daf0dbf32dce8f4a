# Overview: Operator maintenance: purging expired credentials and dead sessions.

from ..time_utils import utcnow
from . import otp_service, password_reset_service, session_service


def cleanup(retention_days: int = 30) -> dict:
    """
    Delete expired OTPs and reset tokens, and sessions that expired or were
    revoked more than retention_days ago.

    Returns the number of rows deleted per table.
    """
    if retention_days < 0:
        raise ValueError("retention_days must be >= 0")

    now = utcnow()
    return {
        "otps": otp_service.purge_expired(now),
        "password_reset_tokens": password_reset_service.purge_expired(now),
        "user_sessions": session_service.purge_sessions(retention_days),
    }
