"""Authorization code to token exchange."""

import logging
from typing import Any

import httpx

from .config import ClientConfiguration
from .discovery import is_valid_endpoint_url
from .errors import ErrorKind, TokenExchangeError
from .tokens import TokenResponse
from .transport import TOKEN_HEADERS, create_http_client

logger = logging.getLogger(__name__)

GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"


def build_token_request(
    config: ClientConfiguration,
    code: str,
    code_verifier: str,
) -> dict[str, str]:
    """Build the form fields of the token request, in wire order.

    client_secret is only included for confidential clients.
    """
    token_request: dict[str, str] = {
        "grant_type": GRANT_TYPE_AUTHORIZATION_CODE,
        "client_id": config.client_id,
    }

    if config.is_confidential():
        token_request["client_secret"] = config.client_secret  # type: ignore

    token_request["redirect_uri"] = config.redirect_uri
    token_request["code"] = code
    token_request["code_verifier"] = code_verifier
    return token_request


def _log_error_body(response: httpx.Response) -> None:
    """Best-effort log of an OAuth error body; never raises."""
    try:
        error_data = response.json()
    except (ValueError, TypeError):
        logger.debug("Token error response had no JSON body")
        return

    if isinstance(error_data, dict):
        # Only the standard error fields, the rest may contain secrets
        logger.warning(
            f"Token endpoint error: {error_data.get('error', '')} - "
            f"{error_data.get('error_description', '')}"
        )


async def exchange_code_for_tokens(
    token_endpoint: str | None,
    config: ClientConfiguration,
    code: str,
    code_verifier: str,
    http_client: httpx.AsyncClient | None = None,
) -> TokenResponse:
    """Exchange an authorization code for tokens.

    Args:
        token_endpoint: Resolved token endpoint
        config: Client configuration
        code: Authorization code from the redirect
        code_verifier: PKCE verifier whose challenge was sent in the login URL
        http_client: Optional HTTP client

    Returns:
        TokenResponse with whichever tokens the provider returned

    Raises:
        TokenExchangeError: If the endpoint is unusable, the request fails,
            the status is not 200 or the body cannot be decoded
    """
    if not token_endpoint:
        raise TokenExchangeError("No token endpoint found", ErrorKind.MISSING_TOKEN_ENDPOINT)

    if not is_valid_endpoint_url(token_endpoint):
        raise TokenExchangeError(
            "Unable to make the token endpoint into a URL",
            ErrorKind.INVALID_ENDPOINT_URL,
        )

    http = http_client or create_http_client(config.timeout)
    should_close = http_client is None

    logger.debug(f"Exchanging authorization code at {token_endpoint}")

    try:
        response = await http.post(
            token_endpoint,
            data=build_token_request(config, code, code_verifier),
            headers=TOKEN_HEADERS,
        )
    except httpx.InvalidURL as e:
        raise TokenExchangeError(
            "Unable to make the token endpoint into a URL",
            ErrorKind.INVALID_ENDPOINT_URL,
            cause=e,
        ) from e
    except httpx.RequestError as e:
        raise TokenExchangeError(
            str(e) or type(e).__name__,
            ErrorKind.TRANSPORT_FAILURE,
            cause=e,
        ) from e
    finally:
        if should_close:
            await http.aclose()

    if response.status_code != 200:
        _log_error_body(response)
        status = f"HTTP {response.status_code}"
        if response.reason_phrase:
            status += f" {response.reason_phrase}"
        raise TokenExchangeError(
            f"Token exchange failed ({status})",
            ErrorKind.NON_SUCCESS_STATUS,
            status_code=response.status_code,
        )

    try:
        data: Any = response.json()
    except (ValueError, TypeError) as e:
        raise TokenExchangeError(
            "Unable to decode response",
            ErrorKind.RESPONSE_DECODE_FAILURE,
            cause=e,
        ) from e

    if not isinstance(data, dict):
        raise TokenExchangeError("Unable to decode response", ErrorKind.RESPONSE_DECODE_FAILURE)

    logger.debug("Token exchange succeeded")
    return TokenResponse.from_dict(data)
