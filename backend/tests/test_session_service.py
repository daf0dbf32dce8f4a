"""
Session manager tests.

Verifies:
- One active session per (user, user-agent) after every create_session
- Logout revokes the device's sessions and reports whether anything changed
- is_session_active requires user, device and refresh token to match
"""

from qrmenu.models import UserSession
from qrmenu.services import session_service, token_service
from qrmenu.services.auth_service import build_profile


def _profile(user):
    return build_profile(user, "email", user.email)


class TestSessionSingularity:
    """create_session leaves exactly one active row per device."""

    def test_repeated_logins_keep_one_active_session(self, db_session, owner):
        profile = _profile(owner)
        for _ in range(3):
            assert session_service.create_session(profile, "Firefox", "10.0.0.1") is not None

        active = session_service.get_active_sessions(owner.unique_id, "Firefox")
        assert len(active) == 1
        assert db_session.query(UserSession).filter_by(user_id=owner.unique_id).count() == 3

    def test_latest_session_is_the_active_one(self, db_session, owner):
        profile = _profile(owner)
        session_service.create_session(profile, "Firefox")
        latest = session_service.create_session(profile, "Firefox")

        active = session_service.get_active_sessions(owner.unique_id, "Firefox")
        assert [s.session_id for s in active] == [latest.session_id]
        assert active[0].refresh_token == latest.refresh_token

    def test_other_devices_are_untouched(self, db_session, owner):
        profile = _profile(owner)
        session_service.create_session(profile, "Firefox")
        session_service.create_session(profile, "Safari")
        session_service.create_session(profile, "Firefox")

        assert len(session_service.get_active_sessions(owner.unique_id, "Safari")) == 1
        assert len(session_service.get_active_sessions(owner.unique_id)) == 2

    def test_missing_device_context_uses_sentinel(self, db_session, owner):
        issued = session_service.create_session(_profile(owner))

        row = db_session.query(UserSession).filter_by(session_id=issued.session_id).one()
        assert row.user_agent == session_service.UNKNOWN_DEVICE
        assert row.ip_address == session_service.UNKNOWN_DEVICE

    def test_issued_tokens_embed_profile(self, db_session, owner):
        issued = session_service.create_session(_profile(owner), "Firefox")

        access = token_service.decode_token(issued.access_token, verify_type="access")
        refresh = token_service.decode_token(issued.refresh_token, verify_type="refresh")
        assert access["user"]["unique_id"] == owner.unique_id
        assert refresh["user"]["email"] == owner.email
        assert "password_hash" not in access["user"]

    def test_injected_id_factory(self, db_session, owner):
        issued = session_service.create_session(_profile(owner), "Firefox", id_factory=lambda: "fixed-session-id")
        assert issued.session_id == "fixed-session-id"


class TestRevokeSession:

    def test_logout_revokes_device(self, db_session, owner):
        session_service.create_session(_profile(owner), "Firefox")

        assert session_service.revoke_session(owner.unique_id, "Firefox") is True
        assert session_service.get_active_sessions(owner.unique_id, "Firefox") == []

    def test_second_logout_reports_failure(self, db_session, owner):
        session_service.create_session(_profile(owner), "Firefox")
        session_service.revoke_session(owner.unique_id, "Firefox")

        assert session_service.revoke_session(owner.unique_id, "Firefox") is False

    def test_revoke_all(self, db_session, owner):
        profile = _profile(owner)
        session_service.create_session(profile, "Firefox")
        session_service.create_session(profile, "Safari")

        assert session_service.revoke_all_user_sessions(owner.unique_id) == 2
        db_session.commit()
        assert session_service.count_active_sessions() == 0


class TestIsSessionActive:

    def test_matching_session(self, db_session, owner):
        issued = session_service.create_session(_profile(owner), "Firefox")
        assert session_service.is_session_active(owner.unique_id, "Firefox", issued.refresh_token)

    def test_wrong_device(self, db_session, owner):
        issued = session_service.create_session(_profile(owner), "Firefox")
        assert not session_service.is_session_active(owner.unique_id, "Safari", issued.refresh_token)

    def test_superseded_refresh_token(self, db_session, owner):
        first = session_service.create_session(_profile(owner), "Firefox")
        session_service.create_session(_profile(owner), "Firefox")
        assert not session_service.is_session_active(owner.unique_id, "Firefox", first.refresh_token)

    def test_missing_refresh_token(self, db_session, owner):
        session_service.create_session(_profile(owner), "Firefox")
        assert not session_service.is_session_active(owner.unique_id, "Firefox", None)
