"""Authorization request URL construction."""

from enum import Enum
from urllib.parse import quote, urlencode, urlparse, urlunparse

from .config import ClientConfiguration
from .discovery import is_valid_endpoint_url
from .pkce import CODE_CHALLENGE_METHOD
from .session import AuthorizationSession


class QueryParam(str, Enum):
    """Query parameter names of the authorization request."""

    CLIENT_ID = "client_id"
    RESPONSE_TYPE = "response_type"
    SCOPE = "scope"
    REDIRECT_URI = "redirect_uri"
    STATE = "state"
    CODE_CHALLENGE_METHOD = "code_challenge_method"
    CODE_CHALLENGE = "code_challenge"
    NONCE = "nonce"


RESPONSE_TYPE_CODE = "code"


def authorization_params(
    config: ClientConfiguration,
    session: AuthorizationSession,
) -> list[tuple[str, str]]:
    """Ordered query parameters for an authorization request."""
    return [
        (QueryParam.CLIENT_ID.value, config.client_id),
        (QueryParam.RESPONSE_TYPE.value, RESPONSE_TYPE_CODE),
        (QueryParam.SCOPE.value, " ".join(config.scopes)),
        (QueryParam.REDIRECT_URI.value, config.redirect_uri),
        (QueryParam.STATE.value, session.state),
        (QueryParam.CODE_CHALLENGE_METHOD.value, CODE_CHALLENGE_METHOD),
        (QueryParam.CODE_CHALLENGE.value, session.code_challenge),
        (QueryParam.NONCE.value, session.nonce),
    ]


def build_authorization_url(
    authorization_endpoint: str | None,
    config: ClientConfiguration,
    session: AuthorizationSession,
) -> str | None:
    """Build the authorization URL for the browser to open.

    Any query already on the endpoint is replaced by the request parameters.

    Args:
        authorization_endpoint: Resolved authorization endpoint
        config: Client configuration
        session: Attempt supplying state, nonce and the PKCE verifier

    Returns:
        Complete authorization URL, or None if the endpoint is unset or invalid
    """
    if not is_valid_endpoint_url(authorization_endpoint):
        return None

    parsed = urlparse(authorization_endpoint)
    # quote (not quote_plus) so the scope separator is encoded as %20
    query = urlencode(authorization_params(config, session), quote_via=quote)
    return urlunparse(parsed._replace(query=query, fragment=""))
