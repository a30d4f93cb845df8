import os
from dataclasses import dataclass

DEFAULT_SCHEDULES = "morning_9amET=09:00@America/New_York~weekdays"


def env_required(name: str) -> str:
    val = os.getenv(name)
    if not val:
        raise RuntimeError(f"Missing required env: {name}")
    return val


def _env(name: str, default: str = "") -> str:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.strip()
    return val if val else default


def _env_bool(name: str, default: bool = False) -> bool:
    val = _env(name)
    if not val:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    metasheet_id: str
    google_credentials: str  # key file path or inline JSON
    google_share_email: str
    slack_bot_token: str
    slack_signing_secret: str
    slack_webhook_url: str
    schedules: str
    debug_routes: bool
    health_port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            metasheet_id=_env("METASHEET_SPREADSHEET_ID"),
            google_credentials=_env("GOOGLE_SERVICE_ACCOUNT_JSON") or _env("GOOGLE_SERVICE_ACCOUNT_FILE"),
            google_share_email=_env("GOOGLE_SHARE_EMAIL"),
            slack_bot_token=_env("SLACK_BOT_TOKEN"),
            slack_signing_secret=_env("SLACK_SIGNING_SECRET"),
            slack_webhook_url=_env("SLACK_WEBHOOK_URL"),
            schedules=_env("ROWBOT_SCHEDULES", DEFAULT_SCHEDULES),
            debug_routes=_env_bool("ROWBOT_DEBUG_ROUTES"),
            health_port=int(_env("ROWBOT_HEALTH_PORT", "8080")),
        )

    def directory_url(self) -> str:
        return f"https://docs.google.com/spreadsheets/d/{self.metasheet_id}/edit"
