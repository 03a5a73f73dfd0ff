from __future__ import annotations

import typing

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class Settings(BaseSettings):
    """
    Service configuration, read from the environment (and an optional .env file)
    once at startup and handed to `app.create_app`.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    static_folder: str = "public"
    log_level: str = "INFO"

    # Spreadsheet data provider
    rgs_endpoint: str = ""
    rgs_secret: str = Field(default="", repr=False)

    # Client-facing shared key
    public_key: str = Field(default="FRONTEND_KEY_ABC123", repr=False)
    notify_require_key: bool = True

    # reCAPTCHA
    recaptcha_secret: str = Field(default="", repr=False)
    recaptcha_verify_url: str = RECAPTCHA_VERIFY_URL

    # Comma separated, "*" allows every origin
    allowed_origins: str = "*"

    upstream_timeout: float = 30.0
    upstream_connect_timeout: float = 10.0

    @property
    def origins(self) -> typing.List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def allow_any_origin(self) -> bool:
        return "*" in self.origins

    @property
    def timeout(self) -> typing.Tuple[float, float]:
        """(connect, read) pair in the form requests expects."""
        return (self.upstream_connect_timeout, self.upstream_timeout)

    def is_origin_allowed(self, origin: typing.Optional[str]) -> bool:
        """
        Decide whether a request with the given Origin header may proceed.

        A missing Origin (same-origin or non-browser callers) is always allowed.
        """
        if not origin:
            return True
        return self.allow_any_origin or origin in self.origins
