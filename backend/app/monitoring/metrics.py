"""Metric definitions for the matching and contact flows."""

from __future__ import annotations

import time

from .registry import registry


http_requests_total = registry.counter(
    "http_requests_total",
    "Number of HTTP requests handled.",
    label_names=("method",),
)

http_errors_total = registry.counter(
    "http_errors_total",
    "Number of HTTP requests answered with a 5xx status.",
)

rate_limited_total = registry.counter(
    "rate_limited_total",
    "Requests rejected by the per-IP rate limiter.",
)

room_joins_total = registry.counter(
    "room_joins_total",
    "Room join attempts by outcome (created or existing membership).",
    label_names=("outcome",),
)

rooms_created_total = registry.counter(
    "rooms_created_total",
    "Rooms materialized by the room resolver.",
)

contact_requests_total = registry.counter(
    "contact_requests_total",
    "Contact request lifecycle events.",
    label_names=("action",),
)

quota_rejections_total = registry.counter(
    "quota_rejections_total",
    "Import operations refused because the daily quota was exhausted.",
)

notification_failures_total = registry.counter(
    "notification_failures_total",
    "Notification fan-outs that failed and were skipped.",
    label_names=("type",),
)

process_start_timestamp = registry.gauge(
    "process_start_timestamp",
    "Unix timestamp of the moment the API process started.",
)


def mark_initial_state() -> None:
    """Record the process start so scrapes before the first request have a baseline."""

    process_start_timestamp.set(time.time())
