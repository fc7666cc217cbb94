"""
Custom exceptions for synocli.
"""

from typing import Any, List, Optional


class SynoCliException(Exception):
    """Base exception for synocli."""

    pass


class ValidationError(SynoCliException):
    """A required value is missing or malformed; no request was made."""

    pass


class NetworkError(SynoCliException):
    """The NAS could not be reached."""

    pass


class ProtocolError(SynoCliException):
    """The NAS answered with something that is not a valid API envelope."""

    pass


class ApiError(SynoCliException):
    """The NAS rejected an operation with an error code."""

    def __init__(self, code: int, api: Optional[str] = None, method: Optional[str] = None):
        # synocli.api imports this module, so the lookup import is deferred
        from .api.codes import describe_error

        self.code = code
        self.api = api
        self.method = method
        self.description = describe_error(code, api)
        super().__init__(f"API error {code}: {self.description}")


class AuthError(SynoCliException):
    """Login or logout was rejected, or the NAS was unreachable during it."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class ManifestError(SynoCliException):
    """Batch manifest could not be decoded."""

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        index: Optional[int] = None,
    ):
        super().__init__(message)
        self.offset = offset
        self.line = line
        self.column = column
        self.index = index


class BatchUnlockError(SynoCliException):
    """An entry of a batch unlock failed; later entries were not attempted."""

    def __init__(self, index: int, request: Any, cause: Exception, completed: List[Any]):
        super().__init__(f"Unlocking share '{request.share_name}' failed: {cause}")
        self.index = index
        self.request = request
        self.cause = cause
        self.completed = completed


class SessionStateError(RuntimeError):
    """Session used in the wrong state (e.g. a share call before login)."""

    pass
