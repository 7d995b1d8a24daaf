"""ActionLauncher implementations."""

from __future__ import annotations

import webbrowser

import structlog

log = structlog.get_logger()


class BrowserActionLauncher:
    """Opens URIs with the system's registered handler."""

    def open(self, uri: str) -> bool:
        try:
            opened = webbrowser.open(uri)
        except webbrowser.Error:
            log.warning("action_launch_failed", uri=uri, exc_info=True)
            return False
        if not opened:
            log.warning("action_launch_failed", uri=uri)
        return opened


class LoggingActionLauncher:
    """Prints URIs instead of opening them (headless terminals)."""

    def __init__(self, echo=print) -> None:
        self._echo = echo

    def open(self, uri: str) -> bool:
        log.info("action_opened", uri=uri)
        self._echo(f"-> {uri}")
        return True
