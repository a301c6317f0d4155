"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "production"  # gated unless set to local/development/dev/test
    # CORS: comma-separated (e.g. http://localhost:5173,https://textmd.xyz). Empty = default list in main.py.
    cors_origins: str = ""
    # Explicit operator bypass of the paywall (diagnostics only). Non-production envs bypass anyway.
    paywall_operator_override: bool = False

    # ===========================================
    # DATABASE (PostgreSQL)
    # ===========================================
    database_url: str  # Required, no default

    # ===========================================
    # REDIS
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"
    idempotency_ttl: int = 86400  # webhook event ids, 24h (Stripe retries for up to 3 days, replays are harmless)

    # ===========================================
    # SESSION COOKIE
    # ===========================================
    session_secret: str  # Required, no default
    session_cookie_name: str = "textmd_session"
    session_max_age: int = 14 * 24 * 3600
    session_cookie_secure: bool = False  # Set True in production (HTTPS)

    # ===========================================
    # PAYWALL / PREVIEW
    # ===========================================
    preview_ratio: float = 0.65
    preview_max_words: int = 1000
    upgrade_price_text: str = "$1/month"

    # ===========================================
    # STRIPE
    # ===========================================
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_id: str = ""
    stripe_webhook_tolerance_seconds: int = 300
    billing_success_url: str = "https://textmd.xyz/billing/success"
    billing_cancel_url: str = "https://textmd.xyz/billing/cancel"

    # Entitlement polling after checkout (payment vs. webhook race)
    billing_poll_attempts: int = 10
    billing_poll_interval_seconds: float = 2.0

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("app_env")
    @classmethod
    def normalize_env(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("preview_ratio")
    @classmethod
    def validate_preview_ratio(cls, v: float) -> float:
        """Ratio must leave something to unlock."""
        if not 0 < v < 1:
            raise ValueError("preview_ratio must be between 0 and 1 (exclusive)")
        return v

    @field_validator("session_secret")
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Ensure session secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("session_secret must be at least 16 characters")
        if v in ("changeme", "secret", "password", "admin"):
            raise ValueError("session_secret is too weak, please change it")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
