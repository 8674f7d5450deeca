"""OpenID Connect discovery.

Fetches the provider's metadata document (usually served at
/.well-known/openid-configuration) and extracts the endpoints the
authorization code flow needs.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import DEFAULT_TIMEOUT
from .errors import DiscoveryError, ErrorKind
from .transport import DISCOVERY_HEADERS, create_http_client

logger = logging.getLogger(__name__)


def _http_status_hint(status_code: int) -> str:
    """Get a user-friendly hint for common HTTP status codes."""
    hints = {
        401: "Discovery document requires authentication - check the discovery URL",
        403: "Access forbidden - the provider refused the discovery request",
        404: "Discovery document not found - check the discovery URL",
        500: "Server error - the identity provider may be experiencing issues",
        502: "Bad gateway - there may be a proxy or network issue",
        503: "Service unavailable - the provider may be temporarily down",
    }
    return hints.get(status_code, "")


def is_valid_endpoint_url(url: str | None) -> bool:
    """Check that a value is an absolute URL httpx can send a request to."""
    if not url:
        return False
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return bool(parsed.scheme and parsed.host)


def _string_field(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None


@dataclass
class DiscoveryDocument:
    """Endpoints published in the provider's discovery document.

    Missing or non-string fields are left as None rather than failing
    the whole resolution.
    """

    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    issuer: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscoveryDocument":
        """Create from JSON response."""
        return cls(
            authorization_endpoint=_string_field(data, "authorization_endpoint"),
            token_endpoint=_string_field(data, "token_endpoint"),
            issuer=_string_field(data, "issuer"),
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "issuer": self.issuer,
            "authorization_endpoint": self.authorization_endpoint,
            "token_endpoint": self.token_endpoint,
        }


async def fetch_discovery_document(
    url: str,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> DiscoveryDocument:
    """Fetch and parse the provider's discovery document.

    Args:
        url: The discovery URL, e.g. https://idp.example.com/.well-known/openid-configuration
        http_client: Optional HTTP client to use
        timeout: Request timeout in seconds

    Returns:
        DiscoveryDocument instance

    Raises:
        DiscoveryError: If the document cannot be fetched or parsed
    """
    if not is_valid_endpoint_url(url):
        raise DiscoveryError(
            f"Discovery URL is not a valid absolute URL: {url!r}",
            ErrorKind.INVALID_ENDPOINT_URL,
        )

    client = http_client or create_http_client(timeout)
    should_close = http_client is None

    logger.debug(f"Fetching discovery document from {url}")

    try:
        response = await client.get(url, headers=DISCOVERY_HEADERS)
    except httpx.InvalidURL as e:
        raise DiscoveryError(
            f"Discovery URL cannot be requested: {e}",
            ErrorKind.INVALID_ENDPOINT_URL,
            cause=e,
        ) from e
    except httpx.ConnectError as e:
        raise DiscoveryError(
            f"Could not connect to {url}: {e}. "
            f"Check that the URL is correct and the provider is reachable.",
            ErrorKind.TRANSPORT_FAILURE,
            cause=e,
        ) from e
    except httpx.TimeoutException as e:
        raise DiscoveryError(
            f"Timeout fetching discovery document from {url}: {e}",
            ErrorKind.TRANSPORT_FAILURE,
            cause=e,
        ) from e
    except httpx.RequestError as e:
        raise DiscoveryError(
            f"Network error fetching discovery document: {e}",
            ErrorKind.TRANSPORT_FAILURE,
            cause=e,
        ) from e
    finally:
        if should_close:
            await client.aclose()

    if response.status_code != 200:
        hint = _http_status_hint(response.status_code)
        error_msg = f"Failed to fetch discovery document from {url}: HTTP {response.status_code}"
        if hint:
            error_msg += f". {hint}"
        raise DiscoveryError(
            error_msg,
            ErrorKind.NON_SUCCESS_STATUS,
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except (ValueError, TypeError) as e:
        raise DiscoveryError(
            f"Discovery document was not valid JSON: {e}",
            ErrorKind.DISCOVERY_PARSE_FAILURE,
            cause=e,
        ) from e

    if not isinstance(data, dict):
        raise DiscoveryError(
            "Discovery document is not a JSON object",
            ErrorKind.DISCOVERY_PARSE_FAILURE,
        )

    document = DiscoveryDocument.from_dict(data)
    missing = [key for key, value in document.to_dict().items() if key != "issuer" and value is None]
    if missing:
        logger.warning(f"Discovery document from {url} is missing {', '.join(missing)}")
    logger.debug(f"Successfully fetched discovery document from {url}")
    return document
