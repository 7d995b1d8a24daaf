"""HTTP AlertDispatcher posting to the relay server's /api/send-sos."""

from __future__ import annotations

import httpx
import structlog

from firsthelp.core.errors import DispatchError
from firsthelp.core.models import AlertIntent, DispatchResponse

log = structlog.get_logger()


class HttpAlertDispatcher:
    """AlertDispatcher backed by the FirstHelp relay."""

    def __init__(self, url: str, timeout_seconds: float = 10.0,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._transport = transport

    async def dispatch(self, intent: AlertIntent) -> DispatchResponse:
        payload = intent.to_payload()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise DispatchError(f"relay unreachable: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise DispatchError(f"relay answered {resp.status_code} with a non-JSON body") from exc
        if not isinstance(body, dict):
            raise DispatchError(f"relay answered {resp.status_code} with a malformed body")

        if resp.is_success and body.get("success") is True:
            message_id = body.get("messageId") or body.get("messageSid")
            log.info("relay_accepted", message_id=message_id)
            return DispatchResponse(success=True, message_id=message_id)

        error = body.get("error") or f"relay answered {resp.status_code}"
        log.warning("relay_rejected", status=resp.status_code, error=error)
        return DispatchResponse(success=False, error=error)
