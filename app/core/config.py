from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./citylocal.db"
    project_name: str = "CityLocal Directory API"
    api_v1_prefix: str = "/api/v1"

    # External identity provider (tokens are issued there, only verified here)
    # AUTH_PROVIDER_URL: base URL of the provider; JWKS URL and issuer are derived from it
    auth_provider_url: str = "http://localhost:54321"
    auth_jwt_audience: str = "authenticated"
    # Users whose email is listed here are created with the admin role
    admin_emails: list[str] = []

    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = "INFO"

    # Per-IP rate limiting (slowapi limit string)
    rate_limit_enabled: bool = True
    rate_limit: str = "100/15 minutes"

    default_page_size: int = 10
    admin_page_size: int = 20
    max_page_size: int = 100

    min_rejection_reason_length: int = 10

    # Outbound email (optional); email is skipped when smtp_host is unset
    smtp_host: str | None = None
    smtp_port: int = 465
    smtp_user: str | None = None
    smtp_password: str | None = None
    email_from: str | None = None
    frontend_url: str = "http://localhost:5173"

    @property
    def auth_jwks_url(self) -> str:
        """Derive JWKS URL from the identity provider URL."""
        return f"{self.auth_provider_url.rstrip('/')}/auth/v1/.well-known/jwks.json"

    @property
    def auth_issuer(self) -> str:
        """Derive expected token issuer from the identity provider URL."""
        return f"{self.auth_provider_url.rstrip('/')}/auth/v1"

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
        populate_by_name=True,
    )


settings = Settings()
