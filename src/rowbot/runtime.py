from dataclasses import dataclass
from functools import lru_cache

from rowbot.clients.sheets import READONLY_SCOPES, READWRITE_SCOPES, SheetsClient, load_service_account
from rowbot.clients.slack import SlackClient
from rowbot.config import Settings, env_required
from rowbot.metasheet import MetaSheet


@dataclass
class Runtime:
    settings: Settings
    sheets: SheetsClient  # read-only access to the bots' own sheets
    metasheet: MetaSheet
    slack: SlackClient


def build_runtime(settings: Settings | None = None) -> Runtime:
    settings = settings or Settings.from_env()
    if not settings.google_credentials:
        env_required("GOOGLE_SERVICE_ACCOUNT_FILE")
    subject = settings.google_share_email
    bot_sheets = SheetsClient(load_service_account(settings.google_credentials, READONLY_SCOPES, subject))
    meta_sheets = SheetsClient(load_service_account(settings.google_credentials, READWRITE_SCOPES, subject))
    return Runtime(
        settings=settings,
        sheets=bot_sheets,
        metasheet=MetaSheet(meta_sheets, settings.metasheet_id or env_required("METASHEET_SPREADSHEET_ID")),
        slack=SlackClient(settings.slack_bot_token or env_required("SLACK_BOT_TOKEN")),
    )


@lru_cache(maxsize=1)
def get_runtime() -> Runtime:
    return build_runtime()
