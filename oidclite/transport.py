"""Ephemeral HTTP transport used for every request oidclite makes.

Discovery and token exchange share one client configuration: no cookie
is ever stored or sent, and redirects are not followed.
"""

from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from .config import DEFAULT_TIMEOUT

DISCOVERY_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}

TOKEN_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/x-www-form-urlencoded",
}


def _cookieless_jar() -> CookieJar:
    """Cookie jar whose policy rejects every cookie."""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create an httpx client with no persisted cookies or credentials.

    Args:
        timeout: Request timeout in seconds

    Returns:
        A new httpx.AsyncClient; the caller is responsible for closing it
    """
    return httpx.AsyncClient(
        timeout=timeout,
        cookies=_cookieless_jar(),
        follow_redirects=False,
        trust_env=False,
    )
