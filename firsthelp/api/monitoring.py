"""Health check and monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(prefix="/api")


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from firsthelp.main import VERSION, get_relay, get_stats

    return {
        "status": "ok",
        "message": "FirstHelp relay is running",
        "version": VERSION,
        "smsConfigured": get_relay().sms_configured,
        "uptime_seconds": get_stats().uptime_seconds(),
    }


@router.get("/stats")
async def stats() -> dict:
    """Relay counters: SOS received, sent, rejected and failed."""
    from firsthelp.main import get_stats

    return get_stats().snapshot()
