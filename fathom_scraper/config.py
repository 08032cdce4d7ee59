"""Runtime settings, loaded once at process start."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

BASE_URL = "https://fathom.video"
SIGN_IN_URL = f"{BASE_URL}/users/sign_in"
HOME_URL = f"{BASE_URL}/home"

# Timeouts in milliseconds
SHORT_TIMEOUT = 5000
DEFAULT_TIMEOUT = 10000
NAVIGATION_TIMEOUT = 30000
MANUAL_LOGIN_TIMEOUT = 300000  # 5 minutes, for a human to finish signing in


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str


@dataclass(frozen=True)
class Settings:
    """Everything the scraper needs to know, passed explicitly to components."""

    email: Optional[str] = None
    password: Optional[str] = None
    session_file: Path = Path("auth.json")
    transcripts_dir: Path = Path("transcripts")
    db_path: Optional[Path] = Path("meetings.db")
    headless: bool = True
    browser_path: Optional[str] = None
    log_level: str = "INFO"
    clipboard_attempts: int = 20
    clipboard_interval_ms: int = 500
    probe_timeout: int = SHORT_TIMEOUT
    element_timeout: int = DEFAULT_TIMEOUT
    navigation_timeout: int = NAVIGATION_TIMEOUT
    manual_login_timeout: int = MANUAL_LOGIN_TIMEOUT

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from a .env file and the process environment."""
        load_dotenv(env_file)
        db_path = os.environ.get("FATHOM_DB_PATH", "meetings.db")
        return cls(
            email=os.environ.get("GOOGLE_EMAIL"),
            password=os.environ.get("GOOGLE_PASSWORD"),
            session_file=Path(os.environ.get("FATHOM_SESSION_FILE", "auth.json")),
            transcripts_dir=Path(os.environ.get("FATHOM_TRANSCRIPTS_DIR", "transcripts")),
            db_path=Path(db_path) if db_path else None,
            headless=_env_flag(os.environ.get("FATHOM_HEADLESS"), True),
            browser_path=os.environ.get("CHROMIUM_PATH"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def require_credentials(self) -> Credentials:
        if not self.email or not self.password:
            raise ConfigurationError(
                "Google credentials not found; set GOOGLE_EMAIL and GOOGLE_PASSWORD in .env"
            )
        return Credentials(email=self.email, password=self.password)
