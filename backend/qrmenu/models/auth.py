from __future__ import annotations

from ..extensions import db
from qrmenu.time_utils import to_utc_z


class User(db.Model):
    """
    Cafe/restaurant owner account.

    WHY: Identity anchor for sessions, menu data, invoice templates and orders.
    All linkage from other tables goes through unique_id, not the numeric key.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)

    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(15), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "mobile": self.mobile,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class UserSession(db.Model):
    """
    One authenticated device/browser for a user.

    At most one active (not revoked, not expired) row exists per
    (user_id, user_agent): creating a session revokes the earlier ones
    for the same pair in the same transaction.

    The refresh token string is stored verbatim so the Auth Gate can look
    the session up by exact match. Rows are never deleted on the request
    path; expiry is checked against expires_at.
    """
    __tablename__ = "user_sessions"
    __table_args__ = (
        db.Index("ix_user_sessions_user_agent_active", "user_id", "user_agent", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )

    user_agent = db.Column(db.String(512), nullable=False)
    login_type = db.Column(db.String(16), nullable=False)  # email | mobile
    login_id = db.Column(db.String(255), nullable=False)
    ip_address = db.Column(db.String(45), nullable=False)  # IPv6 max length

    refresh_token = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "user_agent": self.user_agent,
            "login_type": self.login_type,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
            "revoked_at": to_utc_z(self.revoked_at) if self.revoked_at else None,
        }


class OneTimePassword(db.Model):
    """
    Pending OTP login.

    session_id correlates the otp_session_id cookie with this row; it is not a
    UserSession. The code is stored as a SHA-256 hash. Rows stop matching on
    expiry or once failed_attempts reaches OTP_MAX_ATTEMPTS.
    """
    __tablename__ = "otps"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(36), nullable=False, index=True)
    otp_hash = db.Column(db.String(64), nullable=False)
    login_type = db.Column(db.String(16), nullable=False)
    login_id = db.Column(db.String(255), nullable=False)
    failed_attempts = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)


class PasswordResetToken(db.Model):
    """Single-use password reset token (SHA-256 hash of the emailed value)."""
    __tablename__ = "password_reset_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user = db.relationship("User", backref=db.backref("password_reset_tokens", lazy=True))
