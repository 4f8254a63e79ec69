"""
HTTP surface: health, Prometheus metrics and on-demand ticks.
"""

import logging
from datetime import datetime, timezone

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .health import health_report
from .metrics import update_health_metrics
from .scheduler import TickRunner

LOG = logging.getLogger(__name__)

RUNNER_KEY = web.AppKey("runner", TickRunner)


async def root_handler(request):
    """Root endpoint with service information"""
    return web.json_response({
        "message": "pipescaler",
        "status": "running",
        "endpoints": {
            "GET /": "Service info",
            "GET /healthz": "Health check",
            "GET /metrics": "Prometheus metrics",
            "POST /tick": "Run one control loop tick",
        }
    })


async def health_handler(request):
    """Component health plus the last tick outcome"""
    runner = request.app[RUNNER_KEY]
    report = health_report()
    last = runner.control_loop.last_result
    report["last_tick"] = last.to_dict() if last else None
    report["tick_in_progress"] = runner.busy
    return web.json_response(report)


async def metrics_handler(request):
    update_health_metrics()
    return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def tick_handler(request):
    """Manual trigger; body may carry {"isPastDue": true}"""
    is_past_due = False
    if request.can_read_body:
        try:
            body = await request.json()
        except ValueError:
            return web.json_response({"error": "Body must be JSON"}, status=400)
        if isinstance(body, dict):
            is_past_due = bool(body.get("isPastDue", False))

    LOG.info("HTTP_TRIGGER: manual tick requested")
    result = await request.app[RUNNER_KEY].run_tick(is_past_due=is_past_due)
    return web.json_response({
        "message": "Tick completed",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "result": result.to_dict(),
    })


def setup_http_server(runner: TickRunner) -> web.Application:
    """Setup and configure the HTTP server with all routes"""
    app = web.Application()
    app[RUNNER_KEY] = runner

    app.router.add_get('/', root_handler)
    app.router.add_get('/healthz', health_handler)
    app.router.add_get('/metrics', metrics_handler)
    app.router.add_post('/tick', tick_handler)

    return app
