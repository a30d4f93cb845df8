#!/usr/bin/env python3
import argparse
import json
import sys
from collections.abc import Iterable

from rowbot.handlers import handle_schedule, preview
from rowbot.runtime import build_runtime


def main(argv: Iterable[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="rowbot")
    p.add_argument(
        "--task",
        choices=["schedule", "preview", "users", "dedupe", "none"],
        default="schedule",
    )
    p.add_argument("--schedule", default="morning_9amET")
    p.add_argument("--sheet-url", help="sheet to render with --task preview")
    p.add_argument("--algorithm", default="first_row")
    p.add_argument("--date", help="pretend today is this ISO date")
    args = p.parse_args(argv)

    if args.task == "none":
        print("No task scheduled at this time")
        return 0
    if args.task == "preview" and not args.sheet_url:
        p.error("--sheet-url is required for --task preview")

    try:
        runtime = build_runtime()
        if args.task == "schedule":
            result = handle_schedule(
                runtime.metasheet,
                runtime.sheets,
                runtime.slack,
                args.schedule,
                args.date,
                fallback_destination=runtime.settings.slack_webhook_url,
            )
            print(json.dumps(result, indent=2, ensure_ascii=False))
        elif args.task == "preview":
            name_map = runtime.metasheet.load_user_mapping()
            message = preview(runtime.sheets, name_map, args.sheet_url, args.algorithm, args.date)
            print(message if message is not None else "(no message today)")
        elif args.task == "users":
            users = runtime.metasheet.load_user_mapping()
            print(json.dumps(users, indent=2, ensure_ascii=False))
        elif args.task == "dedupe":
            runtime.metasheet.deduplicate_user_mapping()
            print(f"{len(runtime.metasheet.users)} users after dedupe")
    except (RuntimeError, ValueError) as e:
        print(f"{args.task} failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
