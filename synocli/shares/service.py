"""
Share operations: list shares, lock and unlock encrypted shares.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ..api.transport import SHARE, SHARE_CRYPTO, Transport
from ..exceptions import ProtocolError
from ..session.manager import SessionManager
from ..utils.validation import require

logger = logging.getLogger(__name__)

# DSM reports encryption state as an integer
ENCRYPTION_LABELS: Dict[int, str] = {
    0: "none",
    1: "encrypted",
    2: "unlocked",
}


@dataclass(frozen=True)
class Share:
    """A shared folder on the NAS."""

    name: str
    encryption: str
    description: str


def encryption_label(value: Any) -> str:
    """Render the encryption field of a share entry as a label."""
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return ENCRYPTION_LABELS.get(value, str(value))
    if value is None:
        return "none"
    raise ProtocolError(f"Unexpected encryption value: {value!r}")


class ShareService:
    """Domain operations on shares. Each operation is exactly one API call."""

    def __init__(self, transport: Transport, session: SessionManager):
        """
        Initialize share service.

        Args:
            transport: Transport used for API calls
            session: Session manager holding the active session
        """
        self.transport = transport
        self.session = session

    def list_shares(self) -> List[Share]:
        """
        List all shares in the order the NAS returns them.

        Returns:
            List of shares

        Raises:
            SessionStateError: If no session is active
            ApiError: If the NAS rejected the call
            ProtocolError: If the share list is malformed
        """
        token = self.session.token
        data = self.transport.call(
            SHARE,
            "list",
            {"shareType": "all", "additional": json.dumps(["encryption"])},
            session_token=token,
        )

        entries = data.get("shares")
        if not isinstance(entries, list):
            raise ProtocolError("Share list response has no 'shares' list")

        shares = [self._parse_share(entry) for entry in entries]
        logger.debug(f"Listed {len(shares)} shares")
        return shares

    def lock_share(self, name: str) -> None:
        """
        Lock (unmount) an encrypted share.

        Args:
            name: Share name

        Raises:
            ValidationError: If name is empty
            SessionStateError: If no session is active
            ApiError: If the share is missing, not encrypted or already locked
        """
        require("Share name", name)
        token = self.session.token

        self.transport.call(
            SHARE_CRYPTO,
            "encrypt",
            {"name": name},
            session_token=token,
        )
        logger.debug(f"Locked share '{name}'")

    def unlock_share(self, name: str, password: str) -> None:
        """
        Unlock (mount) an encrypted share.

        Args:
            name: Share name
            password: Encryption password of the share

        Raises:
            ValidationError: If name or password is empty
            SessionStateError: If no session is active
            ApiError: On wrong password, missing share or already unlocked share
        """
        require("Share name", name)
        require("Password", password)
        token = self.session.token

        self.transport.call(
            SHARE_CRYPTO,
            "decrypt",
            {"name": name, "password": password},
            session_token=token,
            http_method="POST",
        )
        logger.debug(f"Unlocked share '{name}'")

    @staticmethod
    def _parse_share(entry: Any) -> Share:
        if not isinstance(entry, dict):
            raise ProtocolError(f"Share entry is not an object: {entry!r}")

        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise ProtocolError(f"Share entry has no name: {entry!r}")

        description = entry.get("desc", entry.get("description", ""))
        return Share(
            name=name,
            encryption=encryption_label(entry.get("encryption")),
            description=description if isinstance(description, str) else "",
        )
