"""
Speech recognizer boundary.

The recognizer itself is external. This module wraps any object with
start()/stop() and forwards its events to the session controller, restarting
it after a short delay when it goes quiet ("no-speech") or ends while the
controller still wants to listen.
"""

import asyncio
from typing import Optional, Protocol

import structlog

from discovery.core.config import discovery_config
from discovery.core.exceptions import RecognizerError
from discovery.domain.models.session import RecognizerResult, TranscriptEntry
from discovery.services.listening_session import ListeningSessionController

log = structlog.get_logger(__name__)

NO_SPEECH = "no-speech"


class SpeechRecognizer(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


def should_restart(event: str, error_code: Optional[str], listening: bool) -> bool:
    """
    Decide whether a recognizer lifecycle event warrants a restart.

    Args:
        event: "error" or "end"
        error_code: Recognizer error code for "error" events
        listening: Controller liveness flag

    Returns:
        True for a no-speech error or an end event while listening
    """
    if not listening:
        return False
    if event == "end":
        return True
    return event == "error" and error_code == NO_SPEECH


class RecognizerSupervisor:
    """Keeps an external recognizer running for the controller's session."""

    def __init__(
        self,
        controller: ListeningSessionController,
        recognizer: SpeechRecognizer,
        restart_delay_seconds: Optional[float] = None,
    ):
        self.controller = controller
        self.recognizer = recognizer
        self.restart_delay = (
            restart_delay_seconds
            if restart_delay_seconds is not None
            else discovery_config.recognizer.restart_delay_seconds
        )
        self.restart_count = 0

    def start(self) -> None:
        try:
            self.recognizer.start()
        except Exception as e:
            raise RecognizerError(f"Recognizer failed to start: {e}") from e
        log.info("recognizer_started")

    def stop(self) -> None:
        self.recognizer.stop()
        log.info("recognizer_stopped", restart_count=self.restart_count)

    def on_result(
        self, text: str, is_final: bool = True, confidence: float = 1.0
    ) -> Optional[TranscriptEntry]:
        return self.controller.on_recognizer_result(
            RecognizerResult(text=text, is_final=is_final, confidence=confidence)
        )

    async def on_error(self, error_code: str) -> bool:
        """Handle a recognizer error. Returns True if a restart was issued."""
        if not should_restart("error", error_code, self.controller.should_auto_restart):
            log.warning("recognizer_error", error_code=error_code)
            return False
        return await self._restart(reason=error_code)

    async def on_end(self) -> bool:
        """Handle the recognizer ending. Returns True if a restart was issued."""
        if not should_restart("end", None, self.controller.should_auto_restart):
            return False
        return await self._restart(reason="ended")

    async def _restart(self, reason: str) -> bool:
        await asyncio.sleep(self.restart_delay)
        # Session may have stopped during the delay
        if not self.controller.should_auto_restart:
            return False
        try:
            self.recognizer.start()
        except Exception as e:
            log.error("recognizer_restart_failed", reason=reason, error=str(e))
            return False
        self.restart_count += 1
        log.info("recognizer_restarted", reason=reason, restart_count=self.restart_count)
        return True
