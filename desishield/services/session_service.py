"""
Triage session: the single coordination point for one user.

Holds the input text, the latest analysis, the active error and the feedback
ledger. All mutation happens synchronously inside the methods below; the only
suspension points are the awaited classifier call and the dictation task, so
the render layer can read attributes at any time.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional

from desishield.schemas.analysis_schemas import AnalysisResult, DemoCase, FeedbackEntry, Label
from desishield.services.analysis_client import AnalysisClient
from desishield.services.dictation_service import (
    DictationAdapter,
    DictationState,
    SpeechRecognizer,
)
from desishield.services.feedback_service import (
    FeedbackLedger,
    build_feedback_entry,
    export_filename,
)
from desishield.utils.errors import AnalysisError, CapabilityUnavailableError, DictationFailedError
from desishield.utils.logging_config import StructuredLogger
from desishield.utils.preprocessing import is_blank

logger = StructuredLogger(__name__)


class TriageSession:
    def __init__(
        self,
        analysis_client: Optional[AnalysisClient] = None,
        dictation: Optional[DictationAdapter] = None,
        ledger: Optional[FeedbackLedger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.analysis_client = analysis_client or AnalysisClient()
        self.dictation = dictation or DictationAdapter()
        self.ledger = ledger or FeedbackLedger()
        self.clock = clock

        self.current_input = ""
        self.current_result: Optional[AnalysisResult] = None
        self.analyzed_text: Optional[str] = None
        self.is_analyzing = False
        self.last_error: Optional[str] = None

        # Sequence of the latest issued analysis; older responses are dropped.
        self._sequence = 0
        self._in_flight_message: Optional[str] = None

    # ---------- Input ----------

    def set_input(self, text: str) -> None:
        self.current_input = text or ""

    def clear_input(self) -> None:
        """Discard the input and the shown result; any in-flight answer is ignored."""
        self.current_input = ""
        self.current_result = None
        self.analyzed_text = None
        if self.is_analyzing:
            self._sequence += 1
            self.is_analyzing = False
            self._in_flight_message = None

    @property
    def can_submit(self) -> bool:
        return self.can_submit_text(self.current_input)

    def can_submit_text(self, text: Optional[str]) -> bool:
        """Whether ``text`` could be submitted now, before it is stored as the input."""
        return not self.is_analyzing and not is_blank(text or "")

    # ---------- Analysis ----------

    async def submit(self, text: Optional[str] = None) -> Optional[AnalysisResult]:
        """
        Analyze ``text`` (default: the current input).

        Blank text and a resubmission of the message already in flight are
        ignored without touching state. A different message supersedes the
        in-flight one: whichever analysis was issued last is the only one
        allowed to update the session.

        Returns the result when it was applied, otherwise None.
        """
        message = self.current_input if text is None else text
        if is_blank(message):
            logger.debug("Submit ignored", reason="blank_message")
            return None
        if self.is_analyzing and message == self._in_flight_message:
            logger.debug("Submit ignored", reason="already_analyzing")
            return None

        self._sequence += 1
        sequence = self._sequence
        self.is_analyzing = True
        self.last_error = None
        self._in_flight_message = message

        try:
            result = await self.analysis_client.analyze(message)
        except AnalysisError as e:
            if self._is_stale(sequence):
                return None
            self._settle()
            self.last_error = e.user_message
            return None
        except Exception:
            if sequence == self._sequence:
                self._settle()
            raise

        if self._is_stale(sequence):
            return None

        self._settle()
        self.current_result = result
        self.analyzed_text = message
        return result

    def _settle(self) -> None:
        self.is_analyzing = False
        self._in_flight_message = None

    def _is_stale(self, sequence: int) -> bool:
        if sequence != self._sequence:
            logger.info("Stale analysis response discarded", sequence=sequence, latest=self._sequence)
            return True
        return False

    async def run_demo(self, case: DemoCase) -> Optional[AnalysisResult]:
        self.set_input(case.text)
        return await self.submit(case.text)

    # ---------- Dictation ----------

    @property
    def is_recording(self) -> bool:
        return self.dictation.is_recording

    def start_dictation(self, recognizer: Optional[SpeechRecognizer]) -> bool:
        """Start capturing speech; returns False when speech capture is unavailable."""
        self.last_error = None
        try:
            self.dictation.start_dictation(
                recognizer,
                on_transcript=self._apply_transcript,
                on_failure=self._dictation_failed,
            )
        except CapabilityUnavailableError as e:
            self.last_error = e.user_message
            return False
        return True

    def stop_dictation(self) -> None:
        self.dictation.stop_dictation()

    async def dictate(self, recognizer: Optional[SpeechRecognizer]) -> Optional[str]:
        """Run one capture to its end; returns the transcript when one was applied."""
        if not self.start_dictation(recognizer):
            return None
        outcome = await self.dictation.wait()
        if outcome != DictationState.COMPLETED:
            return None
        return self.current_input

    def _apply_transcript(self, transcript: str) -> None:
        self.current_input = transcript

    def _dictation_failed(self, error: DictationFailedError) -> None:
        self.last_error = error.user_message

    # ---------- Feedback ----------

    @property
    def can_record_feedback(self) -> bool:
        return self.current_result is not None

    def record_feedback(self, user_label: Label) -> Optional[FeedbackEntry]:
        """Log the user's verdict on the current result; no-op without a result."""
        if self.current_result is None:
            return None
        message = self.analyzed_text if self.analyzed_text is not None else self.current_input
        entry = build_feedback_entry(
            message=message,
            result=self.current_result,
            user_label=user_label,
            moment=self.clock(),
        )
        return self.ledger.record(entry)

    @property
    def can_export(self) -> bool:
        return len(self.ledger) > 0

    def export_ledger(self) -> Optional[str]:
        return self.ledger.export_csv()

    def record_export(self, filename: str) -> None:
        """Note that the user downloaded the ledger export."""
        self.ledger.record_export(filename)

    def export_filename(self) -> str:
        return export_filename(self.clock())

    def ledger_stats(self) -> Dict[str, Any]:
        return self.ledger.get_stats()
