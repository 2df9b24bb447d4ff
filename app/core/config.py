from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Slack transport
    SLACK_BOT_TOKEN: str = ""
    SLACK_SIGNING_SECRET: str = ""

    # Text generation (optional; templates only when unset)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    # Flat-file state
    DEADLINES_FILE: str = "user-deadlines.json"
    ROSTER_FILE: str = "roster.json"
    DEADLINE_RETENTION_DAYS: int = 30

    # Schedule. Every time below is interpreted in TIMEZONE.
    TIMEZONE: str = "America/New_York"
    CHECK_IN_TIME: str = "16:30"
    # Cron day-of-week field: 0/7 = Sunday, 1-5 = Monday..Friday
    CHECK_IN_DAYS: str = "1-5"
    REMINDER_SCHEDULE: str = "0 9 * * *"
    CLEANUP_SCHEDULE: str = "0 3 * * 0"
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_POLL_SECONDS: float = 15.0

    # "lightweight" (8h window, 5 words) or "comprehensive" (6h window, 8/12 words)
    CLASSIFIER_PROFILE: str = "lightweight"
    DEDUP_TTL_SECONDS: float = 300.0

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def check_in_cron(self) -> str:
        """CHECK_IN_TIME + CHECK_IN_DAYS as a 5-field cron expression."""
        hour, minute = self.CHECK_IN_TIME.strip().split(":")
        return f"{int(minute)} {int(hour)} * * {self.CHECK_IN_DAYS.strip()}"

    @property
    def openai_enabled(self) -> bool:
        key = self.OPENAI_API_KEY.strip()
        return bool(key) and not key.startswith("your")


settings = Settings()
