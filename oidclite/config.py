"""Client configuration discovery and loading for oidclite."""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigError

# Used when the configuration does not supply its own values
DEFAULT_REDIRECT_URI = "oidclite://openID"
DEFAULT_SCOPES: tuple[str, ...] = ("openid", "profile", "email", "offline_access")
DEFAULT_TIMEOUT = 30.0

# Config file search paths in priority order
CONFIG_SEARCH_PATHS = [
    Path("oidclite.json"),
    Path.home() / ".config" / "oidclite" / "oidclite.json",
]

# Env file search paths in priority order
ENV_SEARCH_PATHS = [
    Path(".env"),
    Path.home() / ".config" / "oidclite" / ".env",
]

# Environment variables that override config file values
ENV_PREFIX = "OIDCLITE_"
ENV_KEYS = ("discovery_url", "client_id", "client_secret", "redirect_uri", "scopes")


def _resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} patterns in a string from environment variables.

    Missing vars resolve to empty string.
    """
    if "${" not in value:
        return value

    result = value
    for match in re.finditer(r'\$\{([^}]+)\}', value):
        env_var = match.group(1)
        env_value = os.environ.get(env_var, "")
        result = result.replace(match.group(0), env_value)
    return result


def _split_scopes(value: str) -> tuple[str, ...]:
    """Split a space- or comma-separated scope string."""
    return tuple(s for s in re.split(r"[\s,]+", value) if s)


@dataclass(frozen=True)
class ClientConfiguration:
    """Immutable settings for one OpenID Connect client.

    The redirect URI is expected to use a custom scheme handled by the
    app that opens the browser; http(s) redirects are refused unless
    allow_http_redirect is set.
    """

    discovery_url: str
    client_id: str
    client_secret: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    timeout: float = DEFAULT_TIMEOUT
    allow_http_redirect: bool = False

    def __post_init__(self) -> None:
        if not self.discovery_url:
            raise ConfigError("discovery_url is required")
        if not self.client_id:
            raise ConfigError("client_id is required")

        # None selects the defaults, matching a caller that omits them
        if self.redirect_uri is None:
            object.__setattr__(self, "redirect_uri", DEFAULT_REDIRECT_URI)
        if self.scopes is None:
            object.__setattr__(self, "scopes", DEFAULT_SCOPES)
        elif isinstance(self.scopes, str):
            object.__setattr__(self, "scopes", _split_scopes(self.scopes))
        else:
            object.__setattr__(self, "scopes", tuple(self.scopes))

        if self.client_secret == "":
            object.__setattr__(self, "client_secret", None)

        scheme = urlparse(self.redirect_uri).scheme.lower()
        if not scheme:
            raise ConfigError(f"redirect_uri has no scheme: {self.redirect_uri}")
        if scheme in ("http", "https") and not self.allow_http_redirect:
            raise ConfigError(
                f"redirect_uri must use a custom scheme, got: {self.redirect_uri}. "
                f"Set allow_http_redirect to use an http(s) redirect."
            )

    def is_confidential(self) -> bool:
        """Check if this is a confidential client (has a secret)."""
        return self.client_secret is not None and len(self.client_secret) > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize without the client secret."""
        return {
            "discovery_url": self.discovery_url,
            "client_id": self.client_id,
            "confidential": self.is_confidential(),
            "redirect_uri": self.redirect_uri,
            "scopes": list(self.scopes),
            "timeout": self.timeout,
        }


def find_config_file(explicit_path: Path | None = None) -> Path | None:
    """Find the config file, checking project then user level."""
    if explicit_path:
        if explicit_path.exists():
            return explicit_path
        return None

    for path in CONFIG_SEARCH_PATHS:
        if path.exists():
            return path
    return None


def find_env_file(explicit_path: Path | None = None) -> Path | None:
    """Find the .env file, checking project then user level."""
    if explicit_path:
        if explicit_path.exists():
            return explicit_path
        return None

    for path in ENV_SEARCH_PATHS:
        if path.exists():
            return path
    return None


def parse_client_config(data: dict[str, Any]) -> ClientConfiguration:
    """Build a ClientConfiguration from JSON-style data.

    String values have ${VAR} references expanded. Unknown keys are ignored.
    """
    values: dict[str, Any] = {}
    for key in ("discovery_url", "client_id", "client_secret", "redirect_uri"):
        value = data.get(key)
        if isinstance(value, str):
            value = _resolve_env_vars(value)
        values[key] = value

    scopes = data.get("scopes")
    if isinstance(scopes, str):
        scopes = _split_scopes(_resolve_env_vars(scopes))
    elif isinstance(scopes, list):
        scopes = tuple(_resolve_env_vars(str(s)) for s in scopes)

    timeout = data.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"timeout must be a number, got: {timeout!r}") from e

    return ClientConfiguration(
        discovery_url=values["discovery_url"] or "",
        client_id=values["client_id"] or "",
        client_secret=values["client_secret"],
        redirect_uri=values["redirect_uri"] or DEFAULT_REDIRECT_URI,
        scopes=scopes or DEFAULT_SCOPES,
        timeout=timeout,
        allow_http_redirect=bool(data.get("allow_http_redirect", False)),
    )


def load_config(
    config_path: Path | None = None,
    env_path: Path | None = None,
) -> ClientConfiguration:
    """Load client configuration from file and environment.

    The .env file is loaded first, then the JSON config file (if any).
    OIDCLITE_* environment variables override values from the file.

    Args:
        config_path: Explicit path to config file (optional)
        env_path: Explicit path to .env file (optional)

    Returns:
        ClientConfiguration

    Raises:
        ConfigError: If required values are missing or invalid
        json.JSONDecodeError: If the config file is invalid JSON
    """
    env_file = find_env_file(env_path)
    if env_file:
        load_dotenv(env_file)

    data: dict[str, Any] = {}
    config_file = find_config_file(config_path)
    if config_file:
        with open(config_file) as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {config_file} must contain a JSON object")
        data.update(loaded)

    for key in ENV_KEYS:
        env_value = os.environ.get(ENV_PREFIX + key.upper())
        if env_value:
            data[key] = env_value

    if not data.get("discovery_url") or not data.get("client_id"):
        searched = ", ".join(str(p) for p in CONFIG_SEARCH_PATHS)
        raise ConfigError(
            f"No client configuration found.\n\n"
            f"Searched: {searched}\n"
            f"and the {ENV_PREFIX}DISCOVERY_URL / {ENV_PREFIX}CLIENT_ID environment variables.\n\n"
            f"Create a config file. Example (oidclite.json):\n\n"
            f'{{\n  "discovery_url": "https://idp.example.com/.well-known/openid-configuration",\n'
            f'  "client_id": "my-client",\n'
            f'  "client_secret": "${{OIDC_CLIENT_SECRET}}"\n}}'
        )

    return parse_client_config(data)
