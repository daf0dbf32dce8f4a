# Overview: Service-layer operations for device sessions; issues and revokes refresh-token sessions.

"""
Session Manager

One session row per authenticated device. A device is identified by the
(user_id, user_agent) pair; creating a session revokes every earlier active
session for the same pair so at most one stays active.

SECURITY FEATURES:
- Refresh token string stored for revocation-by-lookup
- Absolute expiry (SESSION_LIFETIME, default 30 days)
- Revoke-then-insert runs in one transaction
- Access tokens are never persisted
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import UserSession
from ..time_utils import utcnow
from . import token_service
from .identifier_service import IdFactory, new_unique_id

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "Unknown"


@dataclass
class IssuedSession:
    session_id: str
    access_token: str
    refresh_token: str


def _revoke_statement(user_id: str, user_agent: str):
    return (
        update(UserSession)
        .where(
            UserSession.user_id == user_id,
            UserSession.user_agent == user_agent,
            UserSession.is_revoked.is_(False),
        )
        .values(is_revoked=True, revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )


def create_session(
    profile: dict,
    user_agent: str | None = None,
    ip_address: str | None = None,
    id_factory: IdFactory = new_unique_id,
) -> IssuedSession | None:
    """
    Revoke the device's earlier sessions, then issue and persist a new one.

    profile must carry unique_id, login_type and login_id.

    Returns None when the session could not be stored; callers answer with a
    generic 500.
    """
    user_agent = user_agent or UNKNOWN_DEVICE
    ip_address = ip_address or UNKNOWN_DEVICE
    user_id = profile["unique_id"]

    access_token = token_service.create_access_token(profile)
    refresh_token = token_service.create_refresh_token(profile)

    session = UserSession(
        session_id=id_factory(),
        user_id=user_id,
        user_agent=user_agent,
        login_type=profile.get("login_type") or "email",
        login_id=profile.get("login_id") or "",
        ip_address=ip_address,
        refresh_token=refresh_token,
        expires_at=utcnow() + current_app.config["SESSION_LIFETIME"],
        is_revoked=False,
    )

    try:
        db.session.execute(_revoke_statement(user_id, user_agent))
        db.session.add(session)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to create session for user %s", user_id)
        return None

    return IssuedSession(
        session_id=session.session_id,
        access_token=access_token,
        refresh_token=refresh_token,
    )


def revoke_session(user_id: str, user_agent: str | None) -> bool:
    """
    Revoke every active session of the device (logout).

    Returns True only if at least one row changed; "no active session" and
    "already logged out" both report False.
    """
    user_agent = user_agent or UNKNOWN_DEVICE
    result = db.session.execute(_revoke_statement(user_id, user_agent))
    db.session.commit()
    if result.rowcount > 0:
        logger.info("Revoked %d session(s) for user %s", result.rowcount, user_id)
        return True
    return False


def revoke_all_user_sessions(user_id: str) -> int:
    """Revoke every active session of the user on every device. Caller commits."""
    result = db.session.execute(
        update(UserSession)
        .where(UserSession.user_id == user_id, UserSession.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("Revoked all %d session(s) for user %s", result.rowcount, user_id)
    return result.rowcount


def is_session_active(user_id: str, user_agent: str | None, refresh_token: str | None) -> bool:
    """True iff a live session matches user, device and refresh token exactly."""
    if not refresh_token:
        return False
    user_agent = user_agent or UNKNOWN_DEVICE
    return db.session.query(UserSession.id).filter(
        UserSession.user_id == user_id,
        UserSession.user_agent == user_agent,
        UserSession.refresh_token == refresh_token,
        UserSession.is_revoked.is_(False),
        UserSession.expires_at > utcnow(),
    ).first() is not None


def find_active_session_by_refresh_token(refresh_token: str) -> UserSession | None:
    return db.session.query(UserSession).filter(
        UserSession.refresh_token == refresh_token,
        UserSession.is_revoked.is_(False),
        UserSession.expires_at > utcnow(),
    ).first()


def get_active_sessions(user_id: str, user_agent: str | None = None) -> list[UserSession]:
    query = db.session.query(UserSession).filter(
        UserSession.user_id == user_id,
        UserSession.is_revoked.is_(False),
        UserSession.expires_at > utcnow(),
    )
    if user_agent is not None:
        query = query.filter(UserSession.user_agent == user_agent)
    return query.order_by(UserSession.created_at.desc()).all()


def count_active_sessions() -> int:
    return db.session.query(func.count(UserSession.id)).filter(
        UserSession.is_revoked.is_(False),
        UserSession.expires_at > utcnow(),
    ).scalar() or 0


def purge_sessions(retention_days: int) -> int:
    """
    Delete sessions that expired or were revoked more than retention_days ago.

    Operator maintenance only; the request path never deletes sessions.
    """
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(UserSession).filter(
        db.or_(
            UserSession.expires_at < cutoff,
            db.and_(UserSession.is_revoked.is_(True), UserSession.revoked_at < cutoff),
        )
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
