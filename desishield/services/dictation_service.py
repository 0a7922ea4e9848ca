"""
Dictation adapter.

Wraps a speech recognizer behind a start/stop contract. A capture runs as a
task on the current event loop and ends with exactly one terminal event:
a final transcript, a failure, or (after ``stop_dictation``) nothing at all.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional, Protocol

from desishield.utils.errors import (
    CapabilityUnavailableError,
    DictationFailedError,
    DICTATION_UNAVAILABLE_MESSAGE,
)
from desishield.utils.logging_config import StructuredLogger, metrics

logger = StructuredLogger(__name__)


class DictationState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SpeechRecognizer(Protocol):
    """
    External speech-to-text collaborator.

    Recognizers may also expose an ``unavailable_reason`` attribute with the
    user-facing message to show when ``is_available`` is False.
    """

    def is_available(self) -> bool:
        ...

    async def listen(self) -> str:
        """Return the final transcript or raise DictationFailedError."""
        ...


TranscriptCallback = Callable[[str], None]
FailureCallback = Callable[[DictationFailedError], None]


class DictationAdapter:
    """
    State machine: IDLE -> RECORDING -> (COMPLETED | FAILED | CANCELLED) -> IDLE.

    Terminal states are transient; ``state`` is back to IDLE as soon as the
    terminal event has been recorded in ``last_outcome``. Callers must not
    start a second capture while one is recording.
    """

    def __init__(self):
        self.state = DictationState.IDLE
        self.last_outcome: Optional[DictationState] = None
        self._task: Optional[asyncio.Task] = None
        self._capture_id = 0

    @property
    def is_recording(self) -> bool:
        return self.state == DictationState.RECORDING

    def start_dictation(
        self,
        recognizer: Optional[SpeechRecognizer],
        on_transcript: TranscriptCallback,
        on_failure: Optional[FailureCallback] = None,
    ) -> asyncio.Task:
        """
        Begin a capture on the running event loop.

        Raises:
            CapabilityUnavailableError: no usable recognizer; state stays IDLE
        """
        if recognizer is None or not recognizer.is_available():
            reason = getattr(recognizer, "unavailable_reason", None)
            metrics.increment("dictation.unavailable")
            logger.info("Dictation unavailable", reason=reason)
            raise CapabilityUnavailableError(reason or DICTATION_UNAVAILABLE_MESSAGE)

        self._capture_id += 1
        self.state = DictationState.RECORDING
        logger.debug("Dictation started", capture_id=self._capture_id)
        self._task = asyncio.get_running_loop().create_task(
            self._capture(self._capture_id, recognizer, on_transcript, on_failure)
        )
        return self._task

    def stop_dictation(self) -> None:
        """End the current capture early, discarding any transcript. No-op when idle."""
        if self.state != DictationState.RECORDING:
            return

        # Bumping the id orphans the running capture even if it has already
        # produced a transcript that is waiting to be delivered.
        self._capture_id += 1
        if self._task is not None:
            self._task.cancel()
        self._finish(DictationState.CANCELLED)

    async def wait(self) -> Optional[DictationState]:
        """Wait for the current capture to end; returns the last outcome."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        return self.last_outcome

    async def _capture(
        self,
        capture_id: int,
        recognizer: SpeechRecognizer,
        on_transcript: TranscriptCallback,
        on_failure: Optional[FailureCallback],
    ) -> None:
        try:
            transcript = await recognizer.listen()
        except DictationFailedError as e:
            failure = e
        except Exception as e:
            logger.error("Speech recognizer raised unexpectedly", error=str(e), exc_info=True)
            failure = DictationFailedError(str(e))
        else:
            if capture_id != self._capture_id:
                return
            self._finish(DictationState.COMPLETED)
            on_transcript(transcript)
            return

        if capture_id != self._capture_id:
            return
        self._finish(DictationState.FAILED, reason=str(failure))
        if on_failure is not None:
            on_failure(failure)

    def _finish(self, outcome: DictationState, reason: Optional[str] = None) -> None:
        self.state = outcome
        self.last_outcome = outcome
        metrics.increment(f"dictation.{outcome.value}")
        if reason:
            logger.warning(f"Dictation {outcome.value}", reason=reason)
        else:
            logger.info(f"Dictation {outcome.value}")
        self.state = DictationState.IDLE
