"""FirstHelp relay server: main entry point.

This is the only file that knows about concrete implementations.
It wires together the core, SMS gateway, and API layers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from firsthelp.api.monitoring import router as monitoring_router
from firsthelp.api.sos import router as sos_router
from firsthelp.config import AppConfig, load_config
from firsthelp.core.relay import SosRelay
from firsthelp.core.stats import RelayStats
from firsthelp.logging_setup import setup_logging
from firsthelp.sms.twilio_gateway import TwilioSmsGateway

log = structlog.get_logger()

VERSION = "0.1.0"

# Module-level singletons (set during startup)
_relay: SosRelay | None = None
_stats: RelayStats | None = None
_config: AppConfig | None = None


def get_relay() -> SosRelay:
    assert _relay is not None, "Server not initialized"
    return _relay


def get_stats() -> RelayStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _relay, _stats, _config

    _config = load_config()
    setup_logging(_config.logging)

    gateway = TwilioSmsGateway.from_config(_config.sms)
    _stats = RelayStats()
    _relay = SosRelay(gateway=gateway, stats=_stats)

    log.info("server_started",
             env=_config.server.env,
             host=_config.server.host,
             port=_config.server.port,
             sms_configured=gateway is not None)
    if gateway is None:
        log.warning("sms_not_configured",
                    hint="set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER")

    yield

    log.info("server_stopped")


app = FastAPI(
    title="FirstHelp",
    description="SOS relay forwarding emergency alerts to an SMS gateway",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sos_router)
app.include_router(monitoring_router)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    log.error("server_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})
