"""Error types for oidclite.

Every failure raised by the library is an OIDCLiteError carrying a
structured ErrorKind, so callers can branch on the kind instead of
parsing messages. The message is diagnostic text only.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """What went wrong, independent of the human-readable message."""

    INVALID_ENDPOINT_URL = "invalid_endpoint_url"
    MISSING_TOKEN_ENDPOINT = "missing_token_endpoint"
    TRANSPORT_FAILURE = "transport_failure"
    NON_SUCCESS_STATUS = "non_success_status"
    RESPONSE_DECODE_FAILURE = "response_decode_failure"
    DISCOVERY_PARSE_FAILURE = "discovery_parse_failure"
    AUTHORIZATION_DENIED = "authorization_denied"
    STATE_MISMATCH = "state_mismatch"
    MISSING_CODE = "missing_code"
    REDIRECT_MISMATCH = "redirect_mismatch"


class OIDCLiteError(Exception):
    """Base error for all oidclite failures.

    Attributes:
        message: Human-readable description
        kind: Structured error kind
        cause: Underlying exception, if any
        status_code: HTTP status when the failure came from a response
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause
        self.status_code = status_code

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON output."""
        data: dict[str, object] = {"kind": self.kind.value, "message": self.message}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class DiscoveryError(OIDCLiteError):
    """Error while resolving the provider's discovery document."""

    pass


class TokenExchangeError(OIDCLiteError):
    """Error while exchanging an authorization code for tokens."""

    pass


class CallbackError(OIDCLiteError):
    """Error in the redirect that ends the browser login."""

    pass


class ConfigError(ValueError):
    """Invalid or incomplete client configuration."""

    pass
