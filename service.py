#!/usr/bin/env python3
"""
Service wrapper for rowbot that runs continuously.
Fires the configured schedules and serves a health check.
"""

import datetime as dt
import json
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from rowbot.config import Settings
from rowbot.handlers import handle_schedule
from rowbot.runtime import build_runtime
from rowbot.schedules import ScheduleLog, due_schedules, parse_schedules


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def make_health_handler(log: ScheduleLog):
    class HealthCheckHandler(BaseHTTPRequestHandler):
        """/health for liveness probes, /schedules for the last run of each schedule."""

        def do_GET(self):
            if self.path == "/health":
                self._reply("text/plain", log.health_text())
            elif self.path == "/schedules":
                self._reply("application/json", json.dumps(log.snapshot(), sort_keys=True))
            else:
                self.send_response(404)
                self.end_headers()

        def _reply(self, content_type: str, body: str) -> None:
            data = body.encode("utf-8")
            self.send_response(200)
            self.send_header("Content-type", content_type)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, format, *args):
            # Suppress logs
            pass

    return HealthCheckHandler


def run_health_server(log: ScheduleLog, port: int) -> None:
    server = ThreadingHTTPServer(("0.0.0.0", port), make_health_handler(log))
    server.serve_forever()


def run_schedule_safe(schedule: str, runtime, log: ScheduleLog) -> None:
    """Run one schedule and catch exceptions."""
    try:
        print(f"[{_now()}] Running schedule: {schedule}")
        result = handle_schedule(
            runtime.metasheet,
            runtime.sheets,
            runtime.slack,
            schedule,
            fallback_destination=runtime.settings.slack_webhook_url,
        )
        sent = sum(1 for m in result["messages"] if m)
        log.finished(schedule, sent)
        print(f"[{_now()}] Completed: {schedule} ({sent} sent)")
    except Exception as e:
        log.failed(schedule, e)
        print(f"[{_now()}] Error in {schedule}: {e}", file=sys.stderr)


def main_loop(settings: Settings, log: ScheduleLog) -> None:
    """Main service loop - runs every minute and fires the schedules that are due."""
    schedules = parse_schedules(settings.schedules)
    runtime = build_runtime(settings)
    last_run: dict[str, dt.datetime] = {}

    print(f"[{_now()}] rowbot service started: {', '.join(s.name for s in schedules)}")

    while True:
        now = _now()
        current_minute = now.replace(second=0, microsecond=0)

        for name in due_schedules(schedules, now):
            # Only run once per minute
            if last_run.get(name) != current_minute:
                last_run[name] = current_minute
                log.started(name, current_minute)
                thread = threading.Thread(target=run_schedule_safe, args=(name, runtime, log), daemon=True)
                thread.start()

        # Sleep until next minute
        time.sleep(60 - _now().second)


if __name__ == "__main__":
    settings = Settings.from_env()
    log = ScheduleLog(parse_schedules(settings.schedules))
    health_thread = threading.Thread(target=run_health_server, args=(log, settings.health_port), daemon=True)
    health_thread.start()
    print(f"[{_now()}] Health server started on :{settings.health_port}")

    main_loop(settings, log)
