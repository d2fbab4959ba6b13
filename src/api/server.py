"""Query API for tracking records, served with ``aiohttp``.

Routes under ``/api/v1/published-alerts``:
- ``GET  /``                       → every record
- ``GET  /{alert_id}``             → one record (404 if unknown)
- ``GET  /severity/{severity}``    → records by severity
- ``GET  /type/{alert_type}``      → records by alert type
- ``GET  /date-range``             → records published in [startDate, endDate]
- ``GET  /failed``                 → records with a FAILED channel
- ``POST /retry-failed``           → run the retry scheduler (``maxRetries``)
- ``GET  /statistics``             → success rates over ``hours``
"""

from __future__ import annotations

import datetime
from typing import Any

import structlog
from aiohttp import web

from src.core.types import TrackingRecord
from src.dispatch.retry import RetryScheduler
from src.tracking import queries
from src.tracking.store import TrackingStore

logger = structlog.get_logger(__name__)

BASE_PATH = "/api/v1/published-alerts"

_STORE_KEY = "store"
_RETRY_KEY = "retry"
_HOURS_KEY = "stats_window_hours"


def _record_json(record: TrackingRecord) -> dict[str, Any]:
    data = record.model_dump(mode="json")
    data["cellBroadcastStatus"] = record.cell_broadcast_status.value
    data["fcmStatus"] = record.fcm_status.value
    return data


def _records_response(records: list[TrackingRecord]) -> web.Response:
    return web.json_response([_record_json(r) for r in records])


def _bad_request(message: str) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=400)


def _parse_instant(value: str) -> datetime.datetime:
    parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def _int_param(request: web.Request, name: str, default: int | None) -> int | None:
    raw = request.query.get(name)
    if raw is None:
        return default
    return int(raw)


async def _handle_all(request: web.Request) -> web.Response:
    return _records_response(await request.app[_STORE_KEY].all())


async def _handle_get(request: web.Request) -> web.Response:
    record = await request.app[_STORE_KEY].get(request.match_info["alert_id"])
    if record is None:
        raise web.HTTPNotFound()
    return web.json_response(_record_json(record))


async def _handle_severity(request: web.Request) -> web.Response:
    store = request.app[_STORE_KEY]
    return _records_response(await queries.by_severity(store, request.match_info["severity"]))


async def _handle_type(request: web.Request) -> web.Response:
    store = request.app[_STORE_KEY]
    return _records_response(await queries.by_type(store, request.match_info["alert_type"]))


async def _handle_date_range(request: web.Request) -> web.Response:
    try:
        start = _parse_instant(request.query["startDate"])
        end = _parse_instant(request.query["endDate"])
    except KeyError as exc:
        return _bad_request(f"missing query parameter {exc.args[0]}")
    except ValueError as exc:
        return _bad_request(f"invalid date: {exc}")
    store = request.app[_STORE_KEY]
    return _records_response(await queries.in_time_range(store, start, end))


async def _handle_failed(request: web.Request) -> web.Response:
    return _records_response(await queries.failed(request.app[_STORE_KEY]))


async def _handle_retry(request: web.Request) -> web.Response:
    try:
        max_retries = _int_param(request, "maxRetries", None)
    except ValueError:
        return _bad_request("maxRetries must be an integer")
    retried = await request.app[_RETRY_KEY].retry_failed(max_retries)
    logger.info("retry_requested", max_retries=max_retries, retried=retried)
    return web.json_response({
        "status": "success",
        "message": "Retry process initiated for failed alerts",
        "retried": retried,
    })


async def _handle_statistics(request: web.Request) -> web.Response:
    try:
        hours = _int_param(request, "hours", request.app[_HOURS_KEY])
    except ValueError:
        return _bad_request("hours must be an integer")
    return web.json_response(await queries.statistics(request.app[_STORE_KEY], hours))


def create_api_app(
    store: TrackingStore,
    retry: RetryScheduler,
    stats_window_hours: int = 24,
) -> web.Application:
    """Build the aiohttp application (no network binding)."""
    app = web.Application()
    app[_STORE_KEY] = store
    app[_RETRY_KEY] = retry
    app[_HOURS_KEY] = stats_window_hours

    # Fixed segments are registered before the ``{alert_id}`` catch-all.
    app.router.add_get(f"{BASE_PATH}", _handle_all)
    app.router.add_get(f"{BASE_PATH}/failed", _handle_failed)
    app.router.add_get(f"{BASE_PATH}/statistics", _handle_statistics)
    app.router.add_get(f"{BASE_PATH}/date-range", _handle_date_range)
    app.router.add_get(f"{BASE_PATH}/severity/{{severity}}", _handle_severity)
    app.router.add_get(f"{BASE_PATH}/type/{{alert_type}}", _handle_type)
    app.router.add_post(f"{BASE_PATH}/retry-failed", _handle_retry)
    app.router.add_get(f"{BASE_PATH}/{{alert_id}}", _handle_get)
    return app


async def start_api_server(
    store: TrackingStore,
    retry: RetryScheduler,
    host: str = "127.0.0.1",
    port: int = 8084,
    stats_window_hours: int = 24,
) -> web.AppRunner:
    """Start the query API in the background. Returns the runner for cleanup."""
    app = create_api_app(store, retry, stats_window_hours)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("api_server_started", host=host, port=port)
    return runner
