"""SMS gateway interface (port) used by the relay."""

from __future__ import annotations

from typing import Protocol


class SmsGateway(Protocol):
    """Port: sends one SMS and returns the gateway's message id.

    Raises SmsGatewayError when the gateway refuses or cannot be reached.
    """

    async def send(self, to: str, body: str) -> str: ...
