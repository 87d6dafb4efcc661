"""
FastAPI application: every request on any ``*.<domain>`` host is dispatched
to a project directory.
"""

import logging
import time
import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from .. import __version__
from ..config import ConfigStore, UnsupportedConfigValue, ValetConfig, certificates_path, valet_home
from ..drivers import DriverRegistry
from ..structured_logging import log_requests_enabled
from .cache import SitePathCache, create_site_path_cache
from .dispatcher import Dispatcher, RequestContext, StaticFile
from .errors import NoDriverMatch, NoFrontController, NoSiteMatch
from .executor import CGIExecutor
from .metrics import Metrics
from .not_found import build_not_found_view, render_not_found

logger = logging.getLogger("valet.router")

# Paths under this prefix are answered by the router itself on every host.
INTERNAL_PREFIX = "/__valet__"

METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


def _raw_uri(request: Request) -> str:
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


def create_app(
    config_store: ConfigStore | None = None,
    site_cache: SitePathCache | None = None,
    executor: CGIExecutor | None = None,
    certificates_dir: Path | None = None,
    registry: DriverRegistry | None = None,
) -> FastAPI:
    """
    Create the router application.

    Every collaborator can be injected; the defaults read from VALET_HOME.
    """
    config_store = config_store or ConfigStore()
    site_cache = site_cache or create_site_path_cache(valet_home())
    executor = executor or CGIExecutor()
    certificates_dir = certificates_dir or certificates_path()
    metrics = Metrics()
    registries: dict[tuple[str, ...], DriverRegistry] = {}
    log_requests = log_requests_enabled()

    try:
        config = config_store.snapshot()
        logger.info("Serving *.%s from %d project paths", config.domain, len(config.paths))
    except UnsupportedConfigValue as e:
        logger.error("Config validation failed on startup: %s", e)
        logger.warning("Router will continue; requests fail until the config is fixed")

    def registry_for(config: ValetConfig) -> DriverRegistry:
        if registry is not None:
            return registry
        if config.drivers not in registries:
            try:
                registries[config.drivers] = DriverRegistry.from_config(config)
            except UnsupportedConfigValue as e:
                logger.warning("Ignoring configured drivers, using defaults: %s", e)
                registries[config.drivers] = DriverRegistry()
        return registries[config.drivers]

    def handle(context: RequestContext, request_id: str) -> Response:
        log_extra = {"request_id": request_id}
        try:
            config = config_store.snapshot()
        except UnsupportedConfigValue as e:
            logger.error("[%s] %s", request_id, e, extra=log_extra)
            return PlainTextResponse("Valet configuration could not be loaded.", status_code=500)

        dispatcher = Dispatcher(config, site_cache, registry_for(config))
        try:
            result = dispatcher.dispatch(context)
        except NoSiteMatch as e:
            metrics.record_outcome("no_site")
            logger.info("[%s] No site found for %s.%s", request_id, e.site_name, config.domain, extra=log_extra)
            view = build_not_found_view(e.site_name, config, certificates_dir, e.site_count)
            return HTMLResponse(render_not_found(view), status_code=404)
        except NoDriverMatch as e:
            metrics.record_outcome("no_driver")
            logger.info("[%s] No driver serves %s", request_id, context.site_name, extra=log_extra)
            return PlainTextResponse(str(e), status_code=e.status_code)
        except NoFrontController as e:
            metrics.record_outcome("no_front_controller")
            logger.info("[%s] No front controller for %s%s", request_id, context.site_name, context.mutated_uri, extra=log_extra)
            return PlainTextResponse(str(e), status_code=e.status_code)

        if isinstance(result, StaticFile):
            metrics.record_outcome("static")
            return result.response

        metrics.record_outcome("front_controller")
        logger.debug("[%s] Handing off to %s", request_id, result.front_controller, extra=log_extra)
        return executor.execute(result)

    app = FastAPI(title="valet-router", version=__version__)

    @app.middleware("http")
    async def request_metrics(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        metrics.record(getattr(request.state, "site_name", None), response.status_code, duration_ms)
        response.headers["X-Request-ID"] = request_id

        if log_requests:
            logger.info(
                "[%s] %s %s%s -> %d (%dms)",
                request_id,
                request.method,
                request.headers.get("host", ""),
                request.url.path or "/",
                response.status_code,
                int(duration_ms),
                extra={"request_id": request_id},
            )
        return response

    @app.get(f"{INTERNAL_PREFIX}/health")
    async def health():
        """Liveness check."""
        return JSONResponse(
            {
                "status": "ok",
                "version": __version__,
                "uptime_seconds": int(time.time() - metrics.start_time),
            }
        )

    @app.get(f"{INTERNAL_PREFIX}/metrics")
    async def metrics_endpoint():
        data = metrics.snapshot()
        data["site_path_cache"] = site_cache.get_metrics()
        return JSONResponse(data)

    @app.api_route("/{full_path:path}", methods=METHODS)
    async def dispatch_request(request: Request, full_path: str):
        client = request.client
        context = RequestContext(
            host=request.headers.get("host", ""),
            raw_uri=_raw_uri(request),
            method=request.method,
            headers=dict(request.headers),
            body=await request.body(),
            scheme=request.url.scheme,
            remote_addr=client.host if client else "",
        )
        # Dispatch blocks on the filesystem and the CGI process.
        response = await run_in_threadpool(handle, context, request.state.request_id)
        request.state.site_name = context.site_name or None
        return response

    return app
