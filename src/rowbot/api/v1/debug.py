"""Manual triggers for operators. Disabled unless ROWBOT_DEBUG_ROUTES is set."""

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from rowbot.handlers import handle_schedule, preview
from rowbot.runtime import Runtime, get_runtime

router = APIRouter(prefix="/v1/debug", tags=["debug"])


class HelloRequest(BaseModel):
    channel: str


class ScheduleRequest(BaseModel):
    schedule: str
    date: str | None = None


def enabled_runtime(runtime: Runtime = Depends(get_runtime)) -> Runtime:
    if not runtime.settings.debug_routes:
        raise HTTPException(status_code=404, detail="Not Found")
    return runtime


def _upstream(e: Exception) -> HTTPException:
    return HTTPException(status_code=502, detail=str(e))


@router.post("/hello")
def hello(req: HelloRequest, runtime: Runtime = Depends(enabled_runtime)) -> dict[str, str]:
    try:
        runtime.slack.post_message(req.channel, "Hello world!")
    except (RuntimeError, httpx.HTTPError) as e:
        raise _upstream(e) from e
    return {"status": "sent"}


@router.get("/users")
def users(add: str | None = None, runtime: Runtime = Depends(enabled_runtime)) -> dict[str, object]:
    """Reload the user map, optionally appending one ``name:id`` pair first."""
    try:
        if add:
            name, _, user_id = add.partition(":")
            runtime.metasheet.add_user_mapping([(name.strip().lower(), user_id.strip())])
        loaded = runtime.metasheet.load_user_mapping()
    except RuntimeError as e:
        raise _upstream(e) from e
    return {"users": loaded}


@router.post("/users/dedupe")
def dedupe_users(runtime: Runtime = Depends(enabled_runtime)) -> dict[str, object]:
    try:
        runtime.metasheet.deduplicate_user_mapping()
    except RuntimeError as e:
        raise _upstream(e) from e
    return {"users": len(runtime.metasheet.users)}


@router.get("/preview")
def preview_sheet(
    sheet_url: str,
    algorithm: str = "first_row",
    date: str | None = None,
    channel: str | None = None,
    runtime: Runtime = Depends(enabled_runtime),
) -> dict[str, str | None]:
    try:
        name_map = runtime.metasheet.load_user_mapping()
        message = preview(runtime.sheets, name_map, sheet_url, algorithm, date)
        if message and channel:
            runtime.slack.post_message(channel, message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (RuntimeError, httpx.HTTPError) as e:
        raise _upstream(e) from e
    return {"message": message}


@router.post("/schedule")
def run_schedule(req: ScheduleRequest, runtime: Runtime = Depends(enabled_runtime)) -> dict[str, object]:
    try:
        return handle_schedule(
            runtime.metasheet,
            runtime.sheets,
            runtime.slack,
            req.schedule,
            req.date,
            fallback_destination=runtime.settings.slack_webhook_url,
        )
    except RuntimeError as e:
        raise _upstream(e) from e
