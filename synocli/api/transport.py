"""
HTTP transport for the DSM Web API.

Every response is a JSON envelope of the form::

    {"success": true, "data": {...}}
    {"success": false, "error": {"code": 400}}

The transport turns the first into the decoded payload and the second into
an ApiError. Anything else is a ProtocolError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..exceptions import ApiError, NetworkError, ProtocolError
from ..utils.validation import normalize_base_url

logger = logging.getLogger(__name__)

# Never written to the debug log
SECRET_PARAMS = frozenset({"passwd", "password", "_sid"})


@dataclass(frozen=True)
class Endpoint:
    """A DSM API name, the CGI script serving it and the version spoken."""

    api: str
    path: str
    version: int


AUTH = Endpoint("SYNO.API.Auth", "auth.cgi", 3)
SHARE = Endpoint("SYNO.Core.Share", "entry.cgi", 1)
SHARE_CRYPTO = Endpoint("SYNO.Core.Share.Crypto", "entry.cgi", 1)


class Transport:
    """Issues API calls against one NAS and decodes the response envelopes."""

    def __init__(
        self,
        base_url: str,
        verify: bool = True,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the transport.

        Args:
            base_url: NAS address, e.g. https://nas.example.net:5001
            verify: Whether to verify the NAS TLS certificate
            client: Preconfigured httpx client (mainly for tests)
        """
        self.base_url = normalize_base_url(base_url)
        self._client = client or httpx.Client(verify=verify)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *_args: Any) -> None:
        self.close()

    def url_for(self, endpoint: Endpoint) -> str:
        return f"{self.base_url}/webapi/{endpoint.path}"

    def call(
        self,
        endpoint: Endpoint,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        session_token: Optional[str] = None,
        http_method: str = "GET",
    ) -> Dict[str, Any]:
        """
        Call an API method and return its data payload.

        Args:
            endpoint: API to call
            method: API method name, e.g. "login" or "list"
            params: Method parameters
            session_token: Session id from login; omitted only for login itself
            http_method: "GET" sends fields as query string, "POST" as form body

        Returns:
            The envelope's data object, or an empty dict if the call
            succeeded without returning data

        Raises:
            NetworkError: If the NAS cannot be reached or the exchange breaks off
            ProtocolError: If the response is not a valid envelope
            ApiError: If the NAS rejected the call
        """
        fields: Dict[str, Any] = {
            "api": endpoint.api,
            "version": endpoint.version,
            "method": method,
        }
        fields.update(params or {})
        if session_token is not None:
            fields["_sid"] = session_token

        url = self.url_for(endpoint)
        logger.debug(f"{http_method} {url} {self._redact(fields)}")

        try:
            if http_method == "POST":
                response = self._client.post(url, data=fields)
            else:
                response = self._client.request(http_method, url, params=fields)
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {self.base_url} failed: {e}") from e

        return self._decode(response, endpoint, method)

    def _decode(self, response: httpx.Response, endpoint: Endpoint, method: str) -> Dict[str, Any]:
        """Decode a response envelope into its data payload."""
        if not response.is_success:
            raise ProtocolError(
                f"{endpoint.api}.{method}: unexpected HTTP status {response.status_code}"
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise ProtocolError(f"{endpoint.api}.{method}: response is not JSON") from e

        if not isinstance(envelope, dict) or not isinstance(envelope.get("success"), bool):
            raise ProtocolError(f"{endpoint.api}.{method}: response has no success flag")

        if not envelope["success"]:
            error = envelope.get("error")
            code = error.get("code") if isinstance(error, dict) else None
            # bool is an int subclass
            if not isinstance(code, int) or isinstance(code, bool) or code == 0:
                raise ProtocolError(f"{endpoint.api}.{method}: failure without error code")
            logger.debug(f"{endpoint.api}.{method} failed with code {code}")
            raise ApiError(code, api=endpoint.api, method=method)

        data = envelope.get("data", {})
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ProtocolError(f"{endpoint.api}.{method}: data is not an object")

        return data

    @staticmethod
    def _redact(fields: Dict[str, Any]) -> Dict[str, Any]:
        return {k: ("***" if k in SECRET_PARAMS else v) for k, v in fields.items()}
