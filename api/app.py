"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    VOTER_DATA_URL=https://... python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The record set is fetched once at startup (unless VOTER_LOAD_ON_STARTUP=0)
and kept in memory; POST /api/v1/voters/reload fetches it again. A failed
startup load does not stop the service: the UI shows the error and offers
a retry.

APP-003: Structured JSON logging when APP_LOG_FORMAT=json.
APP-004: CORS middleware with configurable origins via APP_CORS_ORIGINS.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from api.deps import build_store, close_session, get_store, set_config, set_store
from api.routes import notify, relay, search, voters
from api.routes import frontend as frontend_routes
from utils.config import AppConfig
from voters.exceptions import (
    ConfigurationError,
    EditConflict,
    FetchError,
    InvalidMobileNumber,
    NotifierBusy,
    RecordNotFound,
    VoterLookupError,
)
from voters.store import VoterStore

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── APP-003: Structured JSON logging ─────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


_logger = logging.getLogger("voter_lookup_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


def _error_body(error: str, detail: str | None, status_code: int) -> dict:
    return {"error": error, "detail": detail, "status_code": status_code}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fetch the record set on startup when configured to; close the HTTP session on shutdown."""
    cfg: AppConfig = app.state.config
    store: VoterStore = app.state.store
    if cfg.load_on_startup and store.source is not None:
        try:
            count = await run_in_threadpool(store.load)
            _logger.info("startup load finished: %d records", count)
        except FetchError as exc:
            _logger.error("startup load failed (%s): %s", exc.kind, exc)
    yield
    close_session()
    _logger.info("outbound HTTP session closed")


def create_app(store: VoterStore | None = None, config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Pre-built voter store (useful for testing). Built from
            *config* when omitted.
        config: Override the configuration read from the environment.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    set_config(cfg)
    if store is None:
        store = build_store(cfg)
    set_store(store)
    _logger.info("starting with config %s", cfg.to_dict())

    app = FastAPI(
        title="Voter Lookup API",
        summary="Search, correct and notify voters of one electoral roll.",
        description=(
            "## Voter Lookup API\n\n"
            "Loads an electoral roll from the remote voter-data API and serves "
            "free-text search, inline corrections of mobile number and address, "
            "and WhatsApp notifications carrying a voter's details.\n\n"
            "### Key concepts\n"
            "- **Search** matches names in any word order, voter card numbers, "
            "mobile numbers, serial numbers, house numbers and ages.\n"
            "- **Edits** go through the update relay; the record only changes "
            "after the relay confirms.\n"
            "- **Bulk notification** sends at most "
            f"{cfg.notify_max_batch} messages per result set, "
            f"{cfg.notify_pause_seconds:g}s apart.\n"
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "voters", "description": "Record set status, lookup and inline edits."},
            {"name": "search", "description": "Free-text search, suggestions and history."},
            {"name": "notify", "description": "WhatsApp notifications, single and bulk."},
            {"name": "relay", "description": "Update relay and messaging proxy."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.config = cfg
    app.state.store = store

    # ── APP-004: CORS middleware ───────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ─────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if path == "/health":
            return response
        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────
    # Handlers are looked up along the exception's MRO, so the specific
    # subclasses win over VoterLookupError and ValueError.

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", str(exc), 500),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content=_error_body("Bad request", str(exc), 400))

    @app.exception_handler(InvalidMobileNumber)
    async def invalid_mobile_handler(request: Request, exc: InvalidMobileNumber):
        return JSONResponse(status_code=400,
                            content=_error_body("Invalid mobile number", exc.user_message, 400))

    @app.exception_handler(RecordNotFound)
    async def not_found_handler(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content=_error_body("Not found", str(exc), 404))

    @app.exception_handler(EditConflict)
    async def edit_conflict_handler(request: Request, exc: EditConflict):
        return JSONResponse(status_code=409, content=_error_body("Conflict", str(exc), 409))

    @app.exception_handler(NotifierBusy)
    async def notifier_busy_handler(request: Request, exc: NotifierBusy):
        return JSONResponse(status_code=409,
                            content=_error_body("Conflict", exc.user_message, 409))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        return JSONResponse(status_code=503,
                            content=_error_body("Service unavailable", exc.user_message, 503))

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError):
        return JSONResponse(status_code=502,
                            content=_error_body("Voter data unavailable", exc.user_message, 502))

    @app.exception_handler(VoterLookupError)
    async def upstream_error_handler(request: Request, exc: VoterLookupError):
        return JSONResponse(status_code=502,
                            content=_error_body("Upstream error", exc.user_message, 502))

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 unless the last load failed and no records are held."""
        status = get_store().status()
        if status["state"] == "failed" and not status["records"]:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "fetch_state": status["state"],
                         "error": status["error"]},
            )
        return {"status": "ok", "records": status["records"], "fetch_state": status["state"],
                "loaded_at": status["loaded_at"]}

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(voters.router, prefix=prefix)
    app.include_router(search.router, prefix=prefix)
    app.include_router(notify.router, prefix=prefix)
    app.include_router(relay.router,  prefix=prefix)

    # ── Static files + Jinja2 templates ───────────────────────────────────────
    _here = Path(__file__).parent.parent  # project root

    static_dir = _here / "static"
    templates_dir = _here / "templates"

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    if templates_dir.exists():
        templates = Jinja2Templates(directory=str(templates_dir))
        frontend_routes.set_templates(templates)
        app.include_router(frontend_routes.router)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
