"""
Auth gate tests.

Verifies:
- Valid access tokens are trusted by signature alone
- Tampered access tokens answer 401, never 500
- Expired access + live refresh renews the access cookie in the same request
- Refresh-only requests renew the same way
- Revoked refresh tokens are rejected
- Every 401 clears both auth cookies
"""

from datetime import timedelta

import pytest

from conftest import TEST_USER_AGENT, cleared_cookie_names, login
from qrmenu.extensions import db
from qrmenu.models import UserSession
from qrmenu.services import auth_gate, session_service, token_service
from qrmenu.services.auth_gate import GateState
from qrmenu.services.auth_service import build_profile

UA = {'User-Agent': TEST_USER_AGENT}


def _expired_access_token(user):
    profile = build_profile(user, "email", user.email)
    return token_service.create_access_token(profile, expires_in=timedelta(seconds=-10))


def _tamper(token: str) -> str:
    header, payload, signature = token.split('.')
    first = 'B' if signature[0] == 'A' else 'A'
    return '.'.join([header, payload, first + signature[1:]])


# =============================================================================
# GATE STATE MACHINE (service level)
# =============================================================================


class TestGateDecisions:

    def test_no_tokens(self, db_session):
        decision = auth_gate.authenticate(None, None)
        assert decision.state is GateState.UNAUTHORIZED
        assert decision.via is GateState.NO_TOKENS
        assert decision.clear_cookies

    def test_valid_access(self, db_session, owner):
        issued = session_service.create_session(build_profile(owner, "email", owner.email), "Firefox")
        decision = auth_gate.authenticate(issued.access_token, None)
        assert decision.authorized
        assert decision.via is GateState.ACCESS_VALID
        assert decision.user["unique_id"] == owner.unique_id
        assert decision.renewed_access_token is None
        assert not decision.clear_cookies

    def test_refresh_token_is_not_an_access_token(self, db_session, owner):
        issued = session_service.create_session(build_profile(owner, "email", owner.email), "Firefox")
        decision = auth_gate.authenticate(issued.refresh_token, None)
        assert decision.via is GateState.ACCESS_INVALID
        assert decision.message == auth_gate.MSG_ACCESS_INVALID

    def test_invalid_access_does_not_fall_back_to_refresh(self, db_session, owner):
        issued = session_service.create_session(build_profile(owner, "email", owner.email), "Firefox")
        decision = auth_gate.authenticate("garbage", issued.refresh_token)
        assert not decision.authorized
        assert decision.via is GateState.ACCESS_INVALID

    def test_expired_without_refresh(self, db_session, owner):
        decision = auth_gate.authenticate(_expired_access_token(owner), None)
        assert decision.via is GateState.ACCESS_EXPIRED_NO_REFRESH
        assert decision.message == auth_gate.MSG_EXPIRED_NO_REFRESH

    def test_expired_with_live_refresh(self, db_session, owner):
        issued = session_service.create_session(build_profile(owner, "email", owner.email), "Firefox")
        decision = auth_gate.authenticate(_expired_access_token(owner), issued.refresh_token)
        assert decision.authorized
        assert decision.via is GateState.ACCESS_EXPIRED_WITH_REFRESH
        payload = token_service.decode_token(decision.renewed_access_token, verify_type="access")
        assert payload["user"]["unique_id"] == owner.unique_id

    def test_expired_with_revoked_refresh(self, db_session, owner):
        issued = session_service.create_session(build_profile(owner, "email", owner.email), "Firefox")
        session_service.revoke_session(owner.unique_id, "Firefox")
        decision = auth_gate.authenticate(_expired_access_token(owner), issued.refresh_token)
        assert decision.via is GateState.REFRESH_INVALID_OR_REVOKED
        assert decision.clear_cookies


# =============================================================================
# GATE THROUGH HTTP
# =============================================================================


class TestAccessTokenStatelessness:

    def test_valid_access_token_needs_no_session(self, client, owner):
        login(client, owner.email)
        session_service.revoke_all_user_sessions(owner.unique_id)
        db.session.commit()

        resp = client.get('/v1/invoice/', headers=UA)
        assert resp.status_code == 200

    def test_valid_access_token_skips_session_lookup(self, client, owner, monkeypatch):
        login(client, owner.email)

        def fail(_token):
            raise AssertionError("session store consulted")

        monkeypatch.setattr(session_service, "find_active_session_by_refresh_token", fail)
        resp = client.get('/v1/invoice/', headers=UA)
        assert resp.status_code == 200

    def test_tampered_signature_is_401(self, client, owner):
        login(client, owner.email)
        access = client.get_cookie('accessToken').value
        client.set_cookie('accessToken', _tamper(access))

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 401
        assert resp.json['code'] == 'UNAUTHORIZED'
        assert resp.json['message'] == 'Invalid access token'
        assert set(cleared_cookie_names(resp)) == {'accessToken', 'refreshToken'}


class TestRefreshSelfHeal:

    def test_expired_access_is_renewed(self, client, owner, db_session):
        login(client, owner.email)
        refresh_before = client.get_cookie('refreshToken').value
        client.set_cookie('accessToken', _expired_access_token(owner))

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 200
        assert resp.json['code'] == 'AUTHORIZED'

        renewed = client.get_cookie('accessToken').value
        payload = token_service.decode_token(renewed, verify_type='access')
        assert payload['user']['unique_id'] == owner.unique_id

        # The refresh token and its session row are not rotated
        assert client.get_cookie('refreshToken').value == refresh_before
        rows = db_session.query(UserSession).filter_by(user_id=owner.unique_id).all()
        assert len(rows) == 1
        assert rows[0].refresh_token == refresh_before
        assert rows[0].is_revoked is False

    def test_refresh_only_request_is_renewed(self, client, owner):
        login(client, owner.email)
        client.delete_cookie('accessToken')

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 200
        assert client.get_cookie('accessToken') is not None

    def test_renewed_cookie_attributes(self, client, owner):
        login(client, owner.email)
        client.set_cookie('accessToken', _expired_access_token(owner))

        resp = client.get('/v1/auth/session/active', headers=UA)
        header = next(h for h in resp.headers.getlist('Set-Cookie') if h.startswith('accessToken='))
        assert 'HttpOnly' in header
        assert 'SameSite=Strict' in header
        assert 'Path=/' in header
        assert 'Max-Age=86400' in header


class TestUnauthorizedClearsCookies:

    def test_no_tokens(self, client, db_session):
        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 401
        assert resp.json['code'] == 'UNAUTHORIZED'
        assert set(cleared_cookie_names(resp)) == {'accessToken', 'refreshToken'}

    def test_revoked_refresh_without_access(self, client, owner, db_session):
        """Revoked refresh token and no access token answers 401 UNAUTHORIZED."""
        login(client, owner.email)
        session_service.revoke_session(owner.unique_id, TEST_USER_AGENT)
        client.delete_cookie('accessToken')

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 401
        assert resp.json['code'] == 'UNAUTHORIZED'
        assert set(cleared_cookie_names(resp)) == {'accessToken', 'refreshToken'}

    def test_expired_access_without_refresh(self, client, owner, db_session):
        client.set_cookie('accessToken', _expired_access_token(owner))

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 401
        assert resp.json['message'] == 'Access token expired, no refresh token provided'
        assert set(cleared_cookie_names(resp)) == {'accessToken', 'refreshToken'}

    def test_expired_access_with_forged_refresh(self, client, owner, db_session):
        client.set_cookie('accessToken', _expired_access_token(owner))
        client.set_cookie('refreshToken', 'not-a-jwt')

        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 401
        assert resp.json['message'] == 'Invalid or expired refresh token'
        assert set(cleared_cookie_names(resp)) == {'accessToken', 'refreshToken'}

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/v1/invoice/"),
            ("POST", "/v1/invoice/"),
            ("GET", "/v1/menu/category"),
            ("GET", "/v1/menu/menu-items"),
            ("GET", "/v1/menu/template"),
            ("GET", "/v1/tables/"),
            ("POST", "/v1/order/all"),
            ("PUT", "/v1/order/status"),
            ("GET", "/v1/auth/session/logout"),
        ],
    )
    def test_protected_routes_require_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


class TestGateFailure:

    def test_gate_exception_is_500(self, client, owner, monkeypatch):
        login(client, owner.email)

        def boom(*_args):
            raise RuntimeError("gate down")

        monkeypatch.setattr(auth_gate, "authenticate", boom)
        resp = client.get('/v1/auth/session/active', headers=UA)
        assert resp.status_code == 500
        assert resp.json['code'] == 'INTERNAL_SERVER_ERROR'
