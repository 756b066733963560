"""Hecate server connection settings."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .env import optional_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_HECATE_URL = "http://localhost:8000"


@dataclass(frozen=True, slots=True)
class HecateConfig:
    """Holds the Hecate instance URL, optional credentials and HTTP behaviour."""

    url: str
    resilience: ResilienceConfig
    username: str | None = None
    password: str | None = None

    @property
    def auth(self) -> tuple[str, str] | None:
        if self.username is None or self.password is None:
            return None
        return self.username, self.password


def normalize_url(url: str) -> str:
    parts = urlsplit(url.strip())
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ConfigurationError(
            f"Hecate URL must include protocol and host, e.g. 'http://localhost:8000': {url!r}"
        )
    return url.strip().rstrip("/") + "/"


def get_hecate_config(
    *,
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    ratelimit: RateLimit | None = None,
) -> HecateConfig:
    """Build the connection settings, falling back to ``HECATE_*`` variables."""

    resolved_url = normalize_url(url or optional_env_var("HECATE_URL") or DEFAULT_HECATE_URL)
    resolved_username = username or optional_env_var("HECATE_USERNAME")
    resolved_password = password or optional_env_var("HECATE_PASSWORD")
    if resolved_username is not None and resolved_password is None:
        raise MissingConfigurationError("HECATE_PASSWORD")
    if resolved_password is not None and resolved_username is None:
        raise MissingConfigurationError("HECATE_USERNAME")

    auth = (
        (resolved_username, resolved_password)
        if resolved_username is not None and resolved_password is not None
        else None
    )
    resilience = ResilienceConfig(
        name="hecate",
        base_url=resolved_url,
        ratelimit=ratelimit or RateLimit(max_calls=10),
        headers={"Accept": "application/json"},
        auth=auth,
    )
    return HecateConfig(
        url=resolved_url,
        resilience=resilience,
        username=resolved_username,
        password=resolved_password,
    )
