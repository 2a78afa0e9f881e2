"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 168

    # One-time login codes
    OTP_TTL_MINUTES: int = 10
    OTP_LENGTH: int = 6
    OTP_HASH_SECRET: str = ""  # Falls back to JWT_SECRET if empty

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (for redirect hints and email links)
    FRONTEND_URL: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: int = 5  # Login + OTP verification attempts
    RATE_LIMIT_API: int = 100  # General API
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Transactional email (Resend)
    PLATFORM_RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "no-reply@helix.com"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # File storage
    STORAGE_BACKEND: str = "local"  # "local" or "s3"
    LOCAL_STORAGE_PATH: str = "/tmp/helix-uploads"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    S3_BUCKET: str = "helix-uploads"
    S3_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # RBAC: reject unknown permission slugs on role creation instead of dropping them
    RBAC_STRICT_PERMISSION_SLUGS: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def otp_hash_secret(self) -> str:
        return self.OTP_HASH_SECRET or self.JWT_SECRET

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only outside local development."""
        return self.ENV not in ("dev", "test")


settings = Settings()
