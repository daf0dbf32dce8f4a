"""
Health endpoint, credential cleanup and CLI tests.
"""

from datetime import timedelta

import pytest

from qrmenu.extensions import db
from qrmenu.models import OneTimePassword, PasswordResetToken, User, UserSession
from qrmenu.services import maintenance_service, session_service
from qrmenu.time_utils import utcnow


def _profile(user):
    return {"unique_id": user.unique_id, "login_type": "email", "login_id": user.email}


class TestHealth:

    def test_healthy(self, client, owner):
        session_service.create_session(_profile(owner), "browser-a", "127.0.0.1")

        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["users"] == 1
        assert resp.json["checks"]["sessions"]["details"]["active_sessions"] == 1
        assert resp.json["timestamp"].endswith("Z")

    def test_unhealthy_session_store(self, client, db_session, monkeypatch):
        def broken():
            raise RuntimeError("session table missing")

        monkeypatch.setattr(session_service, "count_active_sessions", broken)

        resp = client.get('/health')
        assert resp.status_code == 503
        assert resp.json["checks"]["sessions"]["error"] == "Session store error"


class TestCleanup:

    @pytest.fixture
    def stale_rows(self, db_session, owner):
        now = utcnow()
        old = session_service.create_session(_profile(owner), "old-laptop", "10.0.0.1")
        recent = session_service.create_session(_profile(owner), "phone", "10.0.0.2")
        session_service.create_session(_profile(owner), "tablet", "10.0.0.3")

        db_session.query(UserSession).filter_by(session_id=old.session_id).update(
            {"expires_at": now - timedelta(days=40)}
        )
        db_session.query(UserSession).filter_by(session_id=recent.session_id).update(
            {"is_revoked": True, "revoked_at": now - timedelta(days=1)}
        )
        db_session.add(OneTimePassword(
            session_id="otp-old", otp_hash="0" * 64, login_type="email",
            login_id=owner.email, expires_at=now - timedelta(minutes=1),
        ))
        db_session.add(OneTimePassword(
            session_id="otp-live", otp_hash="1" * 64, login_type="email",
            login_id=owner.email, expires_at=now + timedelta(minutes=5),
        ))
        db_session.add(PasswordResetToken(
            user_id=owner.unique_id, token_hash="2" * 64, expires_at=now - timedelta(hours=2),
        ))
        db_session.commit()

    def test_purges_only_dead_rows(self, db_session, stale_rows):
        deleted = maintenance_service.cleanup(retention_days=30)

        assert deleted == {"otps": 1, "password_reset_tokens": 1, "user_sessions": 1}
        assert db_session.query(UserSession).count() == 2
        assert [o.session_id for o in db_session.query(OneTimePassword).all()] == ["otp-live"]

    def test_zero_retention_drops_revoked(self, db_session, stale_rows):
        deleted = maintenance_service.cleanup(retention_days=0)
        assert deleted["user_sessions"] == 2

    def test_negative_retention(self, db_session):
        with pytest.raises(ValueError):
            maintenance_service.cleanup(retention_days=-1)


class TestCli:

    def test_create_user(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'users', 'create',
            '--first-name', 'Lin', '--last-name', 'Chen',
            '--email', 'Lin@Cafe.local', '--mobile', '9000000003',
            '--password', 'Password123!',
        ])
        assert result.exit_code == 0, result.output
        assert "PASS Created user lin@cafe.local" in result.output
        assert db.session.query(User).filter_by(email="lin@cafe.local").count() == 1

    def test_create_user_weak_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'users', 'create',
            '--first-name', 'Lin', '--last-name', 'Chen',
            '--email', 'lin@cafe.local', '--mobile', '9000000003',
            '--password', 'weak',
        ])
        assert result.exit_code == 1
        assert "FAIL Password validation failed" in result.output

    def test_revoke_all_sessions(self, app, owner):
        session_service.create_session(_profile(owner), "browser-a", "127.0.0.1")
        session_service.create_session(_profile(owner), "browser-b", "127.0.0.1")

        result = app.test_cli_runner().invoke(args=['sessions', 'revoke', '--email', owner.email])
        assert result.exit_code == 0, result.output
        assert "PASS Revoked 2 session(s)" in result.output
        assert session_service.get_active_sessions(owner.unique_id) == []

    def test_cleanup_command(self, app, stale_rows_cli):
        result = app.test_cli_runner().invoke(args=['maintenance', 'cleanup', '--retention-days', '30'])
        assert result.exit_code == 0, result.output
        assert "Deleted 1 rows from otps." in result.output

    @pytest.fixture
    def stale_rows_cli(self, db_session, owner):
        db_session.add(OneTimePassword(
            session_id="otp-old", otp_hash="0" * 64, login_type="email",
            login_id=owner.email, expires_at=utcnow() - timedelta(minutes=1),
        ))
        db_session.commit()
