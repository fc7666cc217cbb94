"""
Unit tests for session management functionality.
"""

import httpx
import pytest

from synocli.exceptions import (
    ApiError,
    AuthError,
    ProtocolError,
    SessionStateError,
    ValidationError,
)
from synocli.session.manager import SessionManager, SessionScope


class TestSessionManager:
    """Test session manager login and logout."""

    def test_initial_state(self, session):
        """A new manager has no session."""
        assert session.is_authenticated is False
        with pytest.raises(SessionStateError):
            session.token

    def test_login_stores_token(self, fake_nas, session):
        """Login keeps the session id returned by the NAS."""
        session.login("admin", "admin-password")

        assert session.is_authenticated is True
        assert session.token == fake_nas.sid

        login = fake_nas.calls_to("SYNO.API.Auth", "login")[0]
        assert login.http_method == "POST"
        assert login.fields["account"] == "admin"
        assert login.fields["passwd"] == "admin-password"
        assert login.fields["format"] == "sid"
        assert login.fields["session"] == SessionManager.SESSION_NAME

    def test_login_then_logout_clears_token(self, fake_nas, session):
        """Login followed by logout leaves no token behind."""
        session.login("admin", "admin-password")
        session.logout()

        assert session.is_authenticated is False
        with pytest.raises(SessionStateError):
            session.token

        logout = fake_nas.calls_to("SYNO.API.Auth", "logout")[0]
        assert logout.fields["_sid"] == fake_nas.sid

    def test_login_rejected(self, fake_nas, session):
        """Rejected credentials raise AuthError with the API code."""
        fake_nas.reply("SYNO.API.Auth", "login", {"success": False, "error": {"code": 400}})

        with pytest.raises(AuthError) as exc_info:
            session.login("admin", "wrong")

        assert exc_info.value.code == 400
        assert isinstance(exc_info.value.__cause__, ApiError)
        assert session.is_authenticated is False

    def test_login_unreachable(self, fake_nas, session):
        """An unreachable NAS during login is an AuthError."""
        fake_nas.reply("SYNO.API.Auth", "login", httpx.ConnectError("Connection refused"))

        with pytest.raises(AuthError) as exc_info:
            session.login("admin", "admin-password")

        assert exc_info.value.code is None
        assert session.is_authenticated is False

    def test_login_without_sid(self, fake_nas, session):
        """A success envelope without a session id is a protocol error."""
        fake_nas.reply("SYNO.API.Auth", "login", {"success": True, "data": {}})

        with pytest.raises(ProtocolError):
            session.login("admin", "admin-password")

        assert session.is_authenticated is False

    @pytest.mark.parametrize("username,password", [("", "pw"), ("admin", ""), (None, "pw")])
    def test_login_requires_credentials(self, fake_nas, session, username, password):
        """Empty credentials are rejected before any request."""
        with pytest.raises(ValidationError):
            session.login(username, password)

        assert fake_nas.calls == []

    def test_double_login_fails_fast(self, logged_in):
        """Logging in twice is a programming error."""
        with pytest.raises(SessionStateError):
            logged_in.login("admin", "admin-password")

    def test_logout_without_session_fails_fast(self, fake_nas, session):
        """Logout needs an active session."""
        with pytest.raises(SessionStateError):
            session.logout()

        assert fake_nas.calls == []

    def test_logout_rejected_still_clears_token(self, fake_nas, logged_in):
        """The local token is dropped even if the NAS rejects the logout."""
        fake_nas.reply("SYNO.API.Auth", "logout", {"success": False, "error": {"code": 106}})

        with pytest.raises(AuthError) as exc_info:
            logged_in.logout()

        assert exc_info.value.code == 106
        assert "Session timeout" in str(exc_info.value)
        assert logged_in.is_authenticated is False

    def test_logout_unreachable(self, fake_nas, logged_in):
        """Network failure during logout is an AuthError."""
        fake_nas.reply("SYNO.API.Auth", "logout", httpx.ConnectError("Connection reset"))

        with pytest.raises(AuthError):
            logged_in.logout()

        assert logged_in.is_authenticated is False

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(502),
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"success": False}),
        ],
    )
    def test_logout_invalid_response(self, fake_nas, logged_in, response):
        """A malformed logout response is still an AuthError."""
        fake_nas.reply("SYNO.API.Auth", "logout", response)

        with pytest.raises(AuthError) as exc_info:
            logged_in.logout()

        assert isinstance(exc_info.value.__cause__, ProtocolError)
        assert logged_in.is_authenticated is False


class TestSessionScope:
    """Test scoped sessions."""

    def test_scope_logs_in_and_out(self, fake_nas, session):
        """Entering logs in, leaving logs out."""
        with session.scope("admin", "admin-password") as active:
            assert active is session
            assert session.is_authenticated is True

        assert session.is_authenticated is False
        assert len(fake_nas.calls_to("SYNO.API.Auth", "logout")) == 1

    def test_scope_logs_out_on_error(self, fake_nas, session):
        """Logout happens even when the body fails."""
        with pytest.raises(KeyError):
            with session.scope("admin", "admin-password"):
                raise KeyError("boom")

        assert session.is_authenticated is False
        assert len(fake_nas.calls_to("SYNO.API.Auth", "logout")) == 1

    def test_failed_login_skips_logout(self, fake_nas, session):
        """Nothing to tear down when login fails."""
        fake_nas.reply("SYNO.API.Auth", "login", {"success": False, "error": {"code": 400}})

        with pytest.raises(AuthError):
            with session.scope("admin", "wrong"):
                pytest.fail("body must not run")

        assert fake_nas.calls_to("SYNO.API.Auth", "logout") == []

    def test_logout_failure_after_success_propagates(self, fake_nas, session):
        """A failed logout is reported when the body succeeded."""
        fake_nas.reply("SYNO.API.Auth", "logout", {"success": False, "error": {"code": 105}})

        with pytest.raises(AuthError):
            with session.scope("admin", "admin-password"):
                pass

    def test_logout_failure_after_error_is_kept(self, fake_nas, session):
        """The body's error wins; the logout failure is kept on the scope."""
        fake_nas.reply("SYNO.API.Auth", "logout", {"success": False, "error": {"code": 105}})
        scope = SessionScope(session, "admin", "admin-password")

        with pytest.raises(ValueError):
            with scope:
                raise ValueError("primary failure")

        assert isinstance(scope.teardown_error, AuthError)
        assert scope.teardown_error.code == 105
        assert session.is_authenticated is False

    def test_malformed_logout_after_error_is_kept(self, fake_nas, session):
        """An HTTP 500 on logout does not replace the body's error."""
        fake_nas.reply("SYNO.API.Auth", "logout", httpx.Response(500))
        scope = SessionScope(session, "admin", "admin-password")

        with pytest.raises(ApiError) as exc_info:
            with scope:
                raise ApiError(3303)

        assert exc_info.value.code == 3303
        assert isinstance(scope.teardown_error, AuthError)
        assert isinstance(scope.teardown_error.__cause__, ProtocolError)
        assert session.is_authenticated is False

    def test_body_may_logout_itself(self, fake_nas, session):
        """No second logout if the body already closed the session."""
        with session.scope("admin", "admin-password"):
            session.logout()

        assert len(fake_nas.calls_to("SYNO.API.Auth", "logout")) == 1
