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
    JWT_EXPIRES_HOURS: int = 12

    # Practitioner accounts allowed to use the admin API (comma-separated)
    ADMIN_EMAILS: str = ""

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (links in emails)
    FRONTEND_URL: str = "http://localhost:3000"

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""  # Secret for /internal/scheduled/* endpoints

    # Practice
    PRACTICE_NAME: str = "Practice"
    PRACTITIONER_NAME: str = "Practitioner"  # Host name on video sessions
    PRACTITIONER_EMAIL: str = ""
    PRACTICE_TIMEZONE: str = "Europe/Paris"  # Wall clock for availability blocks
    PUBLIC_BOOKING_DURATION_MINUTES: int = 60
    RECURRING_MAX_OCCURRENCES: int = 100

    # Outbound email (Resend). Empty key = dry run, messages are only logged.
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Practice <no-reply@example.com>"
    EMAIL_REPLY_TO: str = ""
    EMAIL_DISPATCH_BATCH_SIZE: int = 50
    EMAIL_DISPATCH_BUFFER_MINUTES: int = 5  # Send entries due within this window

    # Jitsi (JaaS) video sessions
    JITSI_APP_ID: str = ""
    JITSI_API_KEY_ID: str = ""
    JITSI_PRIVATE_KEY: str = ""  # PEM, literal "\n" sequences allowed

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""  # Get from https://sentry.io

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 60  # General API
    RATE_LIMIT_BOOKING: int = 5  # Public booking requests

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def admin_emails_list(self) -> list[str]:
        """Parse ADMIN_EMAILS into lowercase list."""
        if not self.ADMIN_EMAILS:
            return []
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def jitsi_configured(self) -> bool:
        return bool(self.JITSI_APP_ID and self.JITSI_API_KEY_ID and self.JITSI_PRIVATE_KEY)


settings = Settings()
