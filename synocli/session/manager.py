"""
Session management for the DSM Web API.

A session is opened by logging in, which returns a session id ("sid") that
every later call must carry. Sessions are not cached between invocations:
each run of the tool logs in, does its work and logs out again.
"""

import logging
from types import TracebackType
from typing import Optional, Type

from ..api.transport import AUTH, Transport
from ..exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    ProtocolError,
    SessionStateError,
    SynoCliException,
)
from ..utils.validation import require

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the lifecycle of one authenticated session."""

    SESSION_NAME = "Core"

    def __init__(self, transport: Transport):
        """
        Initialize session manager.

        Args:
            transport: Transport used for the login and logout calls
        """
        self.transport = transport
        self._token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> str:
        """
        Session id of the active session.

        Raises:
            SessionStateError: If no session is active
        """
        if self._token is None:
            raise SessionStateError("No active session, login first")
        return self._token

    def login(self, username: str, password: str) -> None:
        """
        Open a new session.

        Args:
            username: DSM account name
            password: DSM account password

        Raises:
            ValidationError: If username or password is empty
            AuthError: If the credentials are rejected or the NAS is unreachable
            ProtocolError: If the NAS answered without a session id
            SessionStateError: If a session is already active
        """
        if self._token is not None:
            raise SessionStateError("Session already active, logout first")

        require("Username", username)
        require("Password", password)

        try:
            data = self.transport.call(
                AUTH,
                "login",
                {
                    "account": username,
                    "passwd": password,
                    "session": self.SESSION_NAME,
                    "format": "sid",
                },
                http_method="POST",
            )
        except ApiError as e:
            raise AuthError(f"Login failed: {e.description}", code=e.code) from e
        except NetworkError as e:
            raise AuthError(f"Login failed: {e}") from e

        sid = data.get("sid")
        if not isinstance(sid, str) or not sid:
            raise ProtocolError("Login response did not contain a session id")

        self._token = sid
        logger.debug(f"Logged in as {username}")

    def logout(self) -> None:
        """
        Close the active session on the NAS and forget the local token.

        The local token is cleared even if the NAS rejects the logout.

        Raises:
            AuthError: If the NAS rejected the logout, could not be reached
                or answered with an invalid response
            SessionStateError: If no session is active
        """
        token = self.token
        try:
            self.transport.call(
                AUTH,
                "logout",
                {"session": self.SESSION_NAME},
                session_token=token,
            )
        except ApiError as e:
            raise AuthError(f"Logout failed: {e.description}", code=e.code) from e
        except (NetworkError, ProtocolError) as e:
            raise AuthError(f"Logout failed: {e}") from e
        finally:
            self._token = None

        logger.debug("Logged out")

    def scope(self, username: str, password: str) -> "SessionScope":
        """
        Get a context manager that logs in on enter and always logs out on exit.

        Args:
            username: DSM account name
            password: DSM account password

        Returns:
            SessionScope for use in a with statement
        """
        return SessionScope(self, username, password)


class SessionScope:
    """
    Scoped session: login on enter, logout on every exit path.

    If the body raises and the logout fails as well, the body's exception
    propagates and the logout failure is kept in ``teardown_error``.
    """

    def __init__(self, manager: SessionManager, username: str, password: str):
        self.manager = manager
        self.username = username
        self.password = password
        self.teardown_error: Optional[SynoCliException] = None

    def __enter__(self) -> SessionManager:
        self.manager.login(self.username, self.password)
        return self.manager

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if not self.manager.is_authenticated:
            return False

        if exc_type is None:
            self.manager.logout()
            return False

        try:
            self.manager.logout()
        except SynoCliException as e:
            logger.error(f"Logout after failed command also failed: {e}")
            self.teardown_error = e

        return False
