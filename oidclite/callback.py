"""Parsing of the redirect that ends the browser login.

The browser (or web view) driving the login hands back the URL the
provider redirected to. This module extracts the code, state and any
error from it.
"""

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from .errors import CallbackError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass
class CallbackResult:
    """Result from the authorization redirect.

    Attributes:
        code: The authorization code from the callback
        state: The state parameter from the callback
        error: Error code if authorization failed
        error_description: Human-readable error description
    """

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    def is_success(self) -> bool:
        """Check if callback was successful."""
        return self.code is not None and self.error is None


def _same_target(url: str, expected: str) -> bool:
    a, b = urlparse(url), urlparse(expected)
    return (
        a.scheme.lower() == b.scheme.lower()
        and a.netloc.lower() == b.netloc.lower()
        and a.path.rstrip("/") == b.path.rstrip("/")
    )


def parse_callback_url(url: str, expected_redirect_uri: str | None = None) -> CallbackResult:
    """Parse the redirect URL into a CallbackResult.

    Parameters are read from the query string, falling back to the
    fragment for providers that answer there.

    Args:
        url: The full URL the provider redirected to
        expected_redirect_uri: If given, the URL must target this redirect URI

    Returns:
        CallbackResult

    Raises:
        CallbackError: If the URL does not target the expected redirect URI
    """
    if expected_redirect_uri and not _same_target(url, expected_redirect_uri):
        raise CallbackError(
            f"Callback URL does not match redirect URI {expected_redirect_uri}",
            ErrorKind.REDIRECT_MISMATCH,
        )

    parsed = urlparse(url)
    params = parse_qs(parsed.query) or parse_qs(parsed.fragment)

    def _first(key: str) -> str | None:
        values = params.get(key)
        return values[0] if values else None

    result = CallbackResult(
        code=_first("code"),
        state=_first("state"),
        error=_first("error"),
        error_description=_first("error_description"),
    )
    if result.error:
        logger.debug(f"Authorization redirect carried error: {result.error}")
    return result
