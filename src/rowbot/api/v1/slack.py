import json
import sys

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from slack_sdk.signature import SignatureVerifier

from rowbot.handlers import handle_slack_event
from rowbot.runtime import Runtime, get_runtime

router = APIRouter(prefix="/v1/slack", tags=["slack"])


def _process_event(runtime: Runtime, body: dict) -> None:
    try:
        handle_slack_event(
            runtime.metasheet,
            runtime.sheets,
            runtime.slack,
            body,
            directory_url=runtime.settings.directory_url(),
        )
    except Exception as e:
        print(f"handle_slack_event failed: {e}", file=sys.stderr)
    else:
        print("finished handle_slack_event")


@router.post("/events")
async def events(
    request: Request,
    background: BackgroundTasks,
    runtime: Runtime = Depends(get_runtime),
) -> dict[str, str]:
    raw = await request.body()
    secret = runtime.settings.slack_signing_secret
    if secret and not SignatureVerifier(secret).is_valid_request(raw, dict(request.headers)):
        raise HTTPException(status_code=401, detail="invalid Slack signature")
    try:
        body = json.loads(raw or b"{}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail="body is not JSON") from e

    challenge = str(body.get("challenge") or "no challenge in the request")
    if body.get("type") == "url_verification":
        return {"challenge": challenge}
    # Slack re-sends events it thinks timed out; the first delivery is already queued
    if request.headers.get("X-Slack-Retry-Num"):
        return {"challenge": challenge}

    # Slack only waits 3 seconds, so answer now and do the work afterwards
    background.add_task(_process_event, runtime, body)
    return {"challenge": challenge}
