"""SOS relay: validates SOS requests, renders the SMS and hands it to the gateway.

This is the relay's business logic. It depends on the SmsGateway protocol,
not on Twilio.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable

import structlog

from firsthelp.core.errors import SmsGatewayError, ValidationError
from firsthelp.core.message import render_sos_message

if TYPE_CHECKING:
    from firsthelp.core.models import SosRequestData
    from firsthelp.core.stats import RelayStats
    from firsthelp.sms.base import SmsGateway

log = structlog.get_logger()

TEST_MESSAGE = "This is a test message from FirstHelp. Your emergency SMS system is working! 🚨"

NOT_CONFIGURED = "SMS gateway is not configured. Please set up environment variables."


class SosRelay:
    """Forwards SOS requests to the SMS gateway."""

    def __init__(
        self,
        gateway: SmsGateway | None,
        stats: RelayStats,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._gateway = gateway
        self._stats = stats
        self._clock = clock

    @property
    def sms_configured(self) -> bool:
        return self._gateway is not None

    async def send_sos(self, request: SosRequestData) -> str:
        """Send the SOS SMS. Returns the gateway message id.

        Raises ValidationError for a missing contact and SmsGatewayError when
        the gateway is unconfigured or fails.
        """
        self._stats.record_received()

        if not request.emergency_contact.strip():
            self._stats.record_rejected()
            raise ValidationError("Emergency contact number is required")

        if self._gateway is None:
            self._stats.record_failed()
            log.warning("sos_relay_unconfigured")
            raise SmsGatewayError(NOT_CONFIGURED)

        body = render_sos_message(
            user_name=request.user_name,
            coordinate=request.location,
            custom_message=request.custom_message,
            timestamp=self._clock(),
        )

        try:
            message_id = await self._gateway.send(request.emergency_contact, body)
        except SmsGatewayError:
            self._stats.record_failed()
            raise

        self._stats.record_sent()
        log.info("sos_relayed", message_id=message_id, to=request.emergency_contact,
                 has_location=request.location is not None)
        return message_id

    async def send_test(self, phone_number: str) -> str:
        """Send the fixed test message used to check the SMS setup."""
        if not phone_number.strip():
            raise ValidationError("Phone number is required")
        if self._gateway is None:
            self._stats.record_test_sms(ok=False)
            raise SmsGatewayError(NOT_CONFIGURED)
        try:
            message_id = await self._gateway.send(phone_number, TEST_MESSAGE)
        except SmsGatewayError:
            self._stats.record_test_sms(ok=False)
            raise
        self._stats.record_test_sms(ok=True)
        log.info("test_sms_sent", message_id=message_id, to=phone_number)
        return message_id
