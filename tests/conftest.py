"""
Shared fixtures: an in-memory NAS speaking the DSM envelope protocol.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, Union
from urllib.parse import parse_qsl

import httpx
import pytest

from synocli.api.transport import Transport
from synocli.session.manager import SessionManager
from synocli.shares.service import ShareService

BASE_URL = "https://nas.example:5001"

Reply = Union[Dict[str, Any], httpx.Response, Exception, Callable[[Dict[str, str]], Any]]


@dataclass
class Call:
    """A request received by the fake NAS."""

    http_method: str
    path: str
    fields: Dict[str, str]

    @property
    def api(self) -> str:
        return self.fields.get("api", "")

    @property
    def method(self) -> str:
        return self.fields.get("method", "")


class FakeNas:
    """Answers API calls from a table of canned replies and records every call."""

    def __init__(self, sid: str = "sid-123"):
        self.sid = sid
        self.calls: List[Call] = []
        self.replies: Dict[Tuple[str, str], Reply] = {
            ("SYNO.API.Auth", "login"): {"success": True, "data": {"sid": sid}},
            ("SYNO.API.Auth", "logout"): {"success": True},
        }

    def reply(self, api: str, method: str, reply: Reply) -> None:
        self.replies[(api, method)] = reply

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            fields = dict(parse_qsl(request.content.decode()))
        else:
            fields = dict(request.url.params)

        call = Call(request.method, request.url.path, fields)
        self.calls.append(call)

        reply = self.replies.get((call.api, call.method), {"success": True})
        if callable(reply) and not isinstance(reply, (dict, httpx.Response)):
            reply = reply(fields)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def calls_to(self, api: str, method: str) -> List[Call]:
        return [c for c in self.calls if c.api == api and c.method == method]


@pytest.fixture
def fake_nas():
    """A fake NAS with login and logout succeeding."""
    return FakeNas()


@pytest.fixture
def transport(fake_nas):
    """Transport wired to the fake NAS."""
    transport = Transport(BASE_URL, client=fake_nas.client())
    yield transport
    transport.close()


@pytest.fixture
def session(transport):
    """Session manager that has not logged in yet."""
    return SessionManager(transport)


@pytest.fixture
def logged_in(session):
    """Session manager with an active session."""
    session.login("admin", "admin-password")
    return session


@pytest.fixture
def share_service(transport, logged_in):
    """Share service on an authenticated session."""
    return ShareService(transport, logged_in)
