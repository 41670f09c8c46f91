from __future__ import annotations

import urllib.parse
from dataclasses import dataclass

from .constants import API_URL, AUTHORIZE_URL, DEFAULT_SETTINGS_PREFIX, TOKEN_URL
from .env import get_env
from .errors import ConfigurationError

_REQUIRED_ENV = (
    ("OK_APP_ID", "application_id"),
    ("OK_APP_PUBLIC_KEY", "public_key"),
    ("OK_APP_SECRET_KEY", "secret_key"),
    ("OK_REDIRECT_URL", "redirect_url"),
)


@dataclass(frozen=True)
class ClientConfig:
    """
    Application credentials registered with Odnoklassniki.

    Attributes:
        application_id: Numeric application id (``client_id`` in OAuth terms)
        public_key: Application public key, sent as ``application_key``
        secret_key: Application secret key; never transmitted, only digested
        redirect_url: Redirect URI registered for the application
        permissions: Scope string requested during authorization
    """

    application_id: str
    public_key: str
    secret_key: str
    redirect_url: str
    permissions: str = ""

    api_url: str = API_URL
    token_url: str = TOKEN_URL
    authorize_url: str = AUTHORIZE_URL
    settings_prefix: str = DEFAULT_SETTINGS_PREFIX

    def __post_init__(self) -> None:
        for field_name in ("application_id", "public_key", "secret_key", "redirect_url"):
            if not getattr(self, field_name):
                raise ConfigurationError(f"{field_name} cannot be empty")

        for field_name in ("api_url", "token_url", "authorize_url"):
            parsed = urllib.parse.urlparse(getattr(self, field_name))
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ConfigurationError(f"{field_name} must be an absolute http(s) URL")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        missing = [key for key, _ in _REQUIRED_ENV if get_env(key) is None]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        values = {name: get_env(key) for key, name in _REQUIRED_ENV}
        return cls(
            **values,
            permissions=get_env("OK_PERMISSIONS", "") or "",
            api_url=get_env("OK_API_URL", API_URL),
            token_url=get_env("OK_TOKEN_URL", TOKEN_URL),
            authorize_url=get_env("OK_AUTHORIZE_URL", AUTHORIZE_URL),
            settings_prefix=get_env("OK_SETTINGS_PREFIX", DEFAULT_SETTINGS_PREFIX),
        )
