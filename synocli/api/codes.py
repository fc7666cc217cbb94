"""
Error codes returned by the DSM Web API.
"""

from typing import Dict, Optional

# Shared by every API
COMMON_ERRORS: Dict[int, str] = {
    100: "Unknown error",
    101: "Invalid parameter",
    102: "The requested API does not exist",
    103: "The requested method does not exist",
    104: "The requested version does not support the functionality",
    105: "The logged in session does not have permission",
    106: "Session timeout",
    107: "Session interrupted by duplicate login",
}

AUTH_ERRORS: Dict[int, str] = {
    400: "No such account or incorrect password",
    401: "Account disabled",
    402: "Permission denied",
    403: "2-step verification code required",
    404: "Failed to authenticate 2-step verification code",
    406: "Enforce to authenticate with 2-factor authentication code",
    407: "Blocked IP source",
    408: "Expired password cannot change",
    409: "Expired password",
    410: "Password must be changed",
}

API_ERRORS: Dict[str, Dict[int, str]] = {
    "SYNO.API.Auth": AUTH_ERRORS,
}


def describe_error(code: int, api: Optional[str] = None) -> str:
    """
    Get a human readable description for an API error code.

    Args:
        code: Numeric error code from the response envelope
        api: Name of the API that returned it, for API specific codes

    Returns:
        Description of the error, or "Unknown error" if the code is not known
    """
    if api and code in API_ERRORS.get(api, {}):
        return API_ERRORS[api][code]

    return COMMON_ERRORS.get(code, "Unknown error")
