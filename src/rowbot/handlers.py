"""What happens when a schedule fires or someone @-mentions the bot."""

import re
import sys
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor

import httpx

from rowbot.clients.sheets import SheetsClient
from rowbot.clients.slack import SlackClient
from rowbot.metasheet import MetaSheet, SheetBotEntry, collect_user_ids
from rowbot.sheetbot import SheetBot

SHEET_URL_RE = re.compile(r"<(https://.*google\.com/.*?/d/.*?)>")
MAX_WORKERS = 8


def _evaluate(sheets: SheetsClient, entry: SheetBotEntry, name_map: Mapping[str, str], fakedate) -> str | None:
    try:
        bot = SheetBot(
            sheets,
            entry.spreadsheet_url,
            filter_spec=entry.b_column_filter,
            custom_message_cell=entry.custom_message_cell,
            name_map=name_map,
        )
        return bot.maybe_message(entry.algorithm, fakedate)
    except Exception as e:
        print(f"sheetbot row {entry.row} ({entry.channel_name}) failed: {e}", file=sys.stderr)
        return None


def handle_schedule(
    metasheet: MetaSheet,
    sheets: SheetsClient,
    slack: SlackClient,
    schedule: str,
    fakedate=None,
    *,
    fallback_destination: str = "",
) -> dict[str, object]:
    """Evaluate every bot on ``schedule`` and post the messages that are due."""
    entries = metasheet.get_sheets(schedule)
    messages: list[str | None] = []
    if entries:
        name_map = metasheet.load_user_mapping()
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(entries))) as pool:
            messages = list(pool.map(lambda e: _evaluate(sheets, e, name_map, fakedate), entries))

        for entry, text in zip(entries, messages):
            if not text:
                continue
            destination = entry.channel_id or fallback_destination
            if not destination:
                print(f"sheetbot row {entry.row} has no channel; message dropped", file=sys.stderr)
                continue
            try:
                slack.post_message(destination, text)
            except (RuntimeError, httpx.HTTPError) as e:
                print(f"sheetbot row {entry.row} post to {destination} failed: {e}", file=sys.stderr)
    return {"sheetbots": [e.to_dict() for e in entries], "messages": messages}


def _record_mentioned_users(metasheet: MetaSheet, slack: SlackClient, event: dict) -> None:
    bot_id = slack.bot_user_id()
    user_ids = [u for u in collect_user_ids(event) if u != bot_id]
    if not user_ids:
        return
    users = [u for u in (slack.user_info(uid) for uid in user_ids) if u]
    pairs = [(str(u.get("name") or "").lower(), u["id"]) for u in users]
    pairs += [(str((u.get("profile") or {}).get("display_name") or "").lower(), u["id"]) for u in users]
    metasheet.add_user_mapping(pairs)


def _add_sheet_from_mention(
    metasheet: MetaSheet,
    sheets: SheetsClient,
    slack: SlackClient,
    event: dict,
    sheet_url: str,
    user_name: str,
    directory_url: str,
) -> None:
    channel = event["channel"]
    try:
        channel_name = slack.channel_name(channel)
        # fails loudly if the sheet is not readable by the bot account
        SheetBot(sheets, sheet_url).maybe_message("first_row")
        metasheet.add_sheet(
            sheet_url=sheet_url,
            channel_id=channel,
            channel_name=channel_name,
            user_added=user_name,
        )
        print(f"add_sheet {sheet_url} {channel}")
        slack.post_message(
            channel,
            "We've added your sheet -- you or an admin can verify that it's setup here: "
            f"<{directory_url}>\n"
            "You can change the algorithm (date_match or date_most_recent) and the schedule there. "
            "Please '@' this bot with the people that can appear in the spreadsheet and they will be @'d in the message.",
        )
    except (RuntimeError, ValueError) as e:
        print(f"add_sheet ERROR {e}", file=sys.stderr)
        slack.post_message(
            channel,
            f"There was an error either accessing or adding your sheet: {type(e).__name__}: {e}\n"
            "Make sure your google sheet is shared with the bot's service account.\n"
            "Make sure the first column is a date, and make sure cell B1 is the template for your message.",
        )


def handle_slack_event(
    metasheet: MetaSheet,
    sheets: SheetsClient,
    slack: SlackClient,
    body: dict,
    directory_url: str = "",
) -> None:
    event = body.get("event") or {}
    if not event.get("user") or event.get("type") != "app_mention":
        return
    _record_mentioned_users(metasheet, slack, event)

    text = event.get("text") or ""
    found = SHEET_URL_RE.search(text)
    if found and "add" in text:
        author = slack.user_info(event["user"]) or {}
        _add_sheet_from_mention(
            metasheet, sheets, slack, event, found.group(1), str(author.get("name") or ""), directory_url
        )


def preview(
    sheets: SheetsClient,
    name_map: Mapping[str, str],
    sheet_url: str,
    algorithm: str = "first_row",
    fakedate=None,
) -> str | None:
    return SheetBot(sheets, sheet_url, name_map=name_map).maybe_message(algorithm, fakedate)
