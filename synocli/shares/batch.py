"""
Batch unlocking of encrypted shares.

A batch manifest is a JSON array of share/password pairs::

    [
        {"Name": "photos", "Password": "secret1"},
        {"Name": "backup", "Password": "secret2"}
    ]

Field names match case-insensitively. Entries are unlocked one at a time in
manifest order and the run stops at the first failure.
"""

import json
import logging
from dataclasses import dataclass
from typing import IO, Any, Dict, List, Optional, Sequence, Union

from ..exceptions import BatchUnlockError, ManifestError, SynoCliException
from ..utils.validation import require
from .service import ShareService

logger = logging.getLogger(__name__)

NAME_FIELD = "Name"
PASSWORD_FIELD = "Password"


@dataclass(frozen=True)
class UnlockRequest:
    """A share to unlock and the password to unlock it with."""

    share_name: str
    password: str

    def __repr__(self) -> str:
        return f"UnlockRequest(share_name={self.share_name!r}, password='***')"


def _lookup(entry: Dict[str, Any], field: str) -> Optional[Any]:
    """Get a field by exact name, falling back to a case-insensitive match."""
    if field in entry:
        return entry[field]
    for key, value in entry.items():
        if key.lower() == field.lower():
            return value
    return None


def _parse_entry(index: int, entry: Any) -> UnlockRequest:
    if not isinstance(entry, dict):
        raise ManifestError(f"Entry {index} is not an object", index=index)

    values = {}
    for field in (NAME_FIELD, PASSWORD_FIELD):
        value = _lookup(entry, field)
        if value is None:
            raise ManifestError(f"Entry {index} has no '{field}' field", index=index)
        if not isinstance(value, str):
            raise ManifestError(f"Entry {index}: '{field}' must be a string", index=index)
        if not value:
            raise ManifestError(f"Entry {index}: '{field}' cannot be empty", index=index)
        values[field] = value

    return UnlockRequest(share_name=values[NAME_FIELD], password=values[PASSWORD_FIELD])


def load_manifest(source: Union[str, bytes, IO[str], IO[bytes]]) -> List[UnlockRequest]:
    """
    Decode a batch manifest.

    Args:
        source: Manifest document as text, bytes or a readable stream

    Returns:
        Unlock requests in manifest order

    Raises:
        ManifestError: If the document is not valid JSON (with the offset,
            line and column of the defect) or does not have the expected shape
    """
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestError(f"Manifest is not valid UTF-8 (offset {e.start})", offset=e.start) from e

    try:
        document = json.loads(source)
    except json.JSONDecodeError as e:
        raise ManifestError(
            f"Failed to decode JSON: {e.msg} (offset {e.pos}, line {e.lineno}, column {e.colno})",
            offset=e.pos,
            line=e.lineno,
            column=e.colno,
        ) from e

    if not isinstance(document, list):
        raise ManifestError("Manifest must be a JSON array of share entries")

    return [_parse_entry(index, entry) for index, entry in enumerate(document)]


def dump_manifest(requests: Sequence[UnlockRequest]) -> str:
    """Encode unlock requests as a manifest document."""
    return json.dumps(
        [{NAME_FIELD: r.share_name, PASSWORD_FIELD: r.password} for r in requests],
        indent=2,
    )


class BatchCoordinator:
    """Unlocks a sequence of shares in order, aborting on the first failure."""

    def __init__(self, shares: ShareService):
        self.shares = shares

    def unlock_all(self, requests: Sequence[UnlockRequest]) -> List[UnlockRequest]:
        """
        Unlock every requested share, one at a time.

        All requests are validated before the first unlock is attempted.

        Args:
            requests: Shares to unlock, in order

        Returns:
            The requests that were unlocked

        Raises:
            ValidationError: If any request has an empty name or password
            BatchUnlockError: If an unlock failed; carries the failing index
                and request, the underlying error and the requests completed
                before it
        """
        for request in requests:
            require("Share name", request.share_name)
            require("Password", request.password)

        completed: List[UnlockRequest] = []
        for index, request in enumerate(requests):
            try:
                self.shares.unlock_share(request.share_name, request.password)
            except SynoCliException as e:
                logger.debug(f"Batch entry {index} ('{request.share_name}') failed, aborting")
                raise BatchUnlockError(index, request, e, completed) from e
            completed.append(request)

        logger.debug(f"Unlocked {len(completed)} shares")
        return completed
