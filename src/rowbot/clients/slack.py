import httpx
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

WEBHOOK_PREFIX = "https://hooks.slack.com/"


def is_webhook_url(destination: str) -> bool:
    return (destination or "").startswith(WEBHOOK_PREFIX)


def post_webhook(url: str, text: str, **extra_payload: object) -> dict[str, object]:
    """Send a message to Slack via Incoming Webhook.

    Args:
        url: Incoming Webhook URL.
        text: Message text.
        **extra_payload: Optional extra fields (e.g., blocks, attachments).
    """
    payload: dict[str, object] = {"text": text}
    if extra_payload:
        payload.update(extra_payload)

    with httpx.Client(timeout=10) as client:
        resp = client.post(url, json=payload)
    resp.raise_for_status()
    return {"ok": True}


class SlackClient:
    def __init__(self, token: str | None = None, *, web_client: WebClient | None = None) -> None:
        if web_client is None and not token:
            raise RuntimeError("Missing SLACK_BOT_TOKEN")
        self.web = web_client or WebClient(token=token)
        self._bot_user_id: str | None = None

    def post_message(self, channel: str, text: str) -> None:
        """Post to a channel id, or to an Incoming Webhook URL."""
        if is_webhook_url(channel):
            post_webhook(channel, text)
            return
        try:
            self.web.chat_postMessage(channel=channel, text=text)
        except SlackApiError as e:
            raise RuntimeError(f"Slack post failed: {e.response['error']}") from e

    def user_info(self, user_id: str) -> dict | None:
        try:
            resp = self.web.users_info(user=user_id)
        except SlackApiError as e:
            print(f"users.info failed for {user_id}: {e.response['error']}")
            return None
        return resp.get("user")

    def bot_user_id(self) -> str:
        if self._bot_user_id is None:
            self._bot_user_id = str(self.web.auth_test().get("user_id") or "")
        return self._bot_user_id

    def channel_name(self, channel: str) -> str:
        try:
            resp = self.web.conversations_info(channel=channel)
        except SlackApiError as e:
            raise RuntimeError(f"Slack channel lookup failed: {e.response['error']}") from e
        return str((resp.get("channel") or {}).get("name") or channel)
