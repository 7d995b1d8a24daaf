"""Exception hierarchy.

Nothing here is fatal to the process: callers catch these at the boundary
where they can degrade to a reduced but usable state.
"""

from __future__ import annotations


class FirstHelpError(Exception):
    """Base class for all FirstHelp errors."""


class ValidationError(FirstHelpError):
    """Input rejected before any network or timer activity."""

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class DispatchError(FirstHelpError):
    """The alert dispatcher could not be reached or answered garbage."""


class SmsGatewayError(FirstHelpError):
    """The SMS gateway is unconfigured or refused the message."""


class SOSStateError(FirstHelpError):
    """An SOS operation was requested in a stage that does not allow it."""
