"""Alert dispatcher interface (port)."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from firsthelp.core.models import AlertIntent, DispatchResponse


class AlertDispatcher(Protocol):
    """Port: delivers an SOS alert intent.

    Returns a DispatchResponse for declared outcomes and raises DispatchError
    when the dispatcher cannot be reached.
    """

    async def dispatch(self, intent: AlertIntent) -> DispatchResponse: ...
