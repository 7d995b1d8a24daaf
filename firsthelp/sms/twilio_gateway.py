"""Twilio implementation of SmsGateway."""

from __future__ import annotations

import asyncio

import structlog
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from firsthelp.config import SmsConfig
from firsthelp.core.errors import SmsGatewayError

log = structlog.get_logger()


class TwilioSmsGateway:
    """SmsGateway backed by Twilio's Messages API.

    The Twilio client is synchronous, so each send runs in a worker thread to
    keep the event loop free.
    """

    def __init__(self, client: Client, from_number: str) -> None:
        self._client = client
        self._from_number = from_number

    @classmethod
    def from_config(cls, config: SmsConfig) -> TwilioSmsGateway | None:
        """Build a gateway, or None when credentials are missing."""
        if not config.configured:
            return None
        return cls(Client(config.account_sid, config.auth_token), config.from_number)

    def _create(self, to: str, body: str) -> str:
        message = self._client.messages.create(body=body, from_=self._from_number, to=to)
        return message.sid

    async def send(self, to: str, body: str) -> str:
        try:
            sid = await asyncio.to_thread(self._create, to, body)
        except (TwilioException, OSError) as exc:
            log.error("twilio_send_failed", to=to, exc_info=True)
            raise SmsGatewayError(str(exc) or "Failed to send SOS message") from exc
        log.debug("twilio_message_created", sid=sid, to=to)
        return sid
