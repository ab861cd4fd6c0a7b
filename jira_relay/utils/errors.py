"""Gateway error type and response body helpers."""

from typing import Any, Dict, Optional

import httpx


class GatewayError(Exception):
    """An error that is rendered to the caller as a JSON response."""

    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"{status_code}: {payload}")

    @classmethod
    def message(cls, status_code: int, error: str) -> "GatewayError":
        return cls(status_code, {"error": error})

    @classmethod
    def missing_credential(cls, error: str = "Authorization required") -> "GatewayError":
        return cls.message(401, error)

    @classmethod
    def missing_field(cls, field: str) -> "GatewayError":
        return cls.message(400, f"{field} is required")


def parse_json_body(response: httpx.Response) -> Optional[Any]:
    """
    Parse a remote response body as JSON.

    Returns:
        The decoded JSON, or None when the body is empty or not JSON
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def error_body(response: httpx.Response) -> Any:
    """
    Body to relay for a remote non-success response.

    The remote JSON is relayed when it parses, otherwise the raw text is
    wrapped as an error message.
    """
    data = parse_json_body(response)
    if data is not None:
        return data
    return {"error": response.text}


def require_credential(credential: Optional[str]) -> str:
    """Return the credential or fail closed with a 401."""
    if not credential:
        raise GatewayError.missing_credential()
    return credential


def error_payload(exc: Exception) -> Dict[str, str]:
    return {"error": str(exc) or exc.__class__.__name__}
