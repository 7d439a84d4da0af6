from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/caprep"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_connect_timeout: int = 5
    sendgrid_base_url: str = "https://api.sendgrid.com"
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "noreply@example.com"
    email_timeout_seconds: float = 20.0

    # Tokens
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "1d"
    jwt_refresh_secret: str | None = None
    jwt_refresh_expires_in: str = "7d"
    # empty means an expired access token can always be refreshed
    access_refresh_grace: str = ""

    # Security / policies
    bcrypt_rounds: int = 12
    otp_length: int = 6
    otp_ttl_seconds: int = 900
    otp_max_attempts: int = 5
    otp_rate_limit: int = 3
    otp_rate_window_seconds: int = 900
    reset_otp_ttl_seconds: int = 600
    verified_email_ttl_seconds: int = 7200
    verified_emails_path: str = "database/verified_emails.json"
    login_max_attempts: int = 5
    login_lockout_seconds: int = 900
    login_delay_min_ms: int = 100
    login_delay_max_ms: int = 200

    # Cache / housekeeping
    cache_default_ttl_seconds: int = 300
    sweep_interval_seconds: float = 60.0

    # Per-IP request limits
    rate_limit_enabled: bool = True
    api_rate_limit: str = "200 per 15 minutes"
    login_rate_limit: str = "10 per 15 minutes"
    send_otp_rate_limit: str = "5 per 15 minutes"
    forgot_password_rate_limit: str = "5 per 15 minutes"
    # X-Forwarded-For hops added by proxies we run; 0 ignores the header
    trusted_proxy_count: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() in ("dev", "development")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
