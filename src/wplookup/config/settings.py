"""Application settings and configuration management."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wplookup.services.poll_policy import PollPolicy


class Config(BaseSettings):
    """Application configuration with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Solving service
    twocaptcha_api_key: str | None = Field(default=None, description="2Captcha API key")
    solve_timeout_seconds: int = Field(
        default=180,
        ge=10,
        le=600,
        description="Upper bound for a single Turnstile solve",
    )
    solver_polling_interval_seconds: int = Field(default=10, ge=1, le=60)

    # Target site
    whitepages_base_url: str = Field(default="https://www.whitepages.com/")
    whitepages_login_url: str = Field(
        default="https://www.whitepages.com/auth/login?redirect=%2F",
    )
    whitepages_email: str | None = Field(default=None, description="Default login email (CLI)")
    whitepages_password: str | None = Field(
        default=None, description="Default login password (CLI)"
    )
    verify_login: bool = Field(
        default=False,
        description="Fail the batch when login markers still show a logged-out session",
    )
    selectors_file: str | None = Field(
        default=None,
        description="Optional JSON file overriding the built-in selector chains",
    )

    # Browser
    headless: bool = Field(default=False, description="Run Chrome without a window")
    browser_channel: str | None = Field(default=None, description="e.g. 'chrome'")
    browser_profile_dir: str = Field(
        default="./browser-data",
        description="Persistent user-data directory (keeps the site session)",
    )
    viewport_width: int = Field(default=1440, ge=320, le=7680)
    viewport_height: int = Field(default=900, ge=240, le=4320)
    user_agent: str | None = Field(default=None)
    page_timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    navigation_timeout_ms: int = Field(default=60000, ge=1000, le=300000)

    # Challenge polling
    challenge_poll_interval_seconds: float = Field(default=1.0, ge=0.0, le=30.0)
    challenge_max_attempts: int = Field(default=30, ge=1, le=600)
    challenge_debounce_rounds: int = Field(default=1, ge=0, le=10)

    # Settle delays
    settle_short_seconds: float = Field(
        default=1.0, ge=0.0, le=30.0, description="Pause after typing or submitting"
    )
    settle_detail_seconds: float = Field(
        default=2.0, ge=0.0, le=30.0, description="Pause after a person-detail page loads"
    )
    login_settle_seconds: float = Field(
        default=3.0, ge=0.0, le=60.0, description="Pause after submitting the login form"
    )

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    rate_limit: str = Field(
        default="10 per 15 minutes",
        description="Per-client limit on POST /api/search",
    )
    rate_limit_enabled: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/wplookup.log", description="Main log file")

    # Solver browser extension (optional, used by configure-extension)
    extension_config_path: str = Field(
        default="./CapSolver.Browser.Extension/assets/config.js",
        description="Extension config.js whose apiKey is rewritten",
    )

    @field_validator("browser_profile_dir", "extension_config_path")
    @classmethod
    def expand_user_path(cls, v: str) -> str:
        """Expand user home directory in paths."""
        return str(Path(v).expanduser())

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Loguru level names are upper case."""
        return v.upper()

    def challenge_poll_policy(self) -> PollPolicy:
        """Policy used every time the Turnstile markers are awaited."""
        return PollPolicy(
            interval_seconds=self.challenge_poll_interval_seconds,
            max_attempts=self.challenge_max_attempts,
            debounce_rounds=self.challenge_debounce_rounds,
        )

    def control_poll_policy(self) -> PollPolicy:
        """Short policy for waiting on form controls and suggestion lists."""
        return PollPolicy(
            interval_seconds=self.settle_short_seconds / 2,
            max_attempts=3,
            debounce_rounds=0,
        )


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
