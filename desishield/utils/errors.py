"""
Error taxonomy for message triage.

Every error carries a ``user_message`` that the render layer can show as-is.
Analysis errors also carry a ``kind`` so logs and tests can tell a transport
failure from a schema violation even though the UI treats them alike.
"""

from typing import List, Optional


ANALYSIS_FAILED_MESSAGE = "An error occurred during analysis."
MISSING_CREDENTIALS_MESSAGE = "API Key is missing. Please check your environment configuration."
DICTATION_UNAVAILABLE_MESSAGE = "Speech recognition not supported in this browser."
DICTATION_FAILED_MESSAGE = "Speech recognition failed. Try again."


class DesiShieldError(Exception):
    """Base class for all triage errors."""

    kind = "error"

    @property
    def user_message(self) -> str:
        return str(self) or ANALYSIS_FAILED_MESSAGE


class AnalysisError(DesiShieldError):
    """Any failure of a single analysis attempt."""

    kind = "analysis"


class InputRejectedError(AnalysisError):
    """Blank or whitespace-only message; raised before any network call."""

    kind = "input"

    def __init__(self, message: str = "Message is empty."):
        super().__init__(message)


class AnalysisTransportError(AnalysisError):
    """The classifier call could not complete (network, auth, service error)."""

    kind = "transport"


class AnalysisSchemaError(AnalysisError):
    """The classifier answered, but the payload does not decode to an AnalysisResult."""

    kind = "schema"

    def __init__(self, reason: str, errors: Optional[List[str]] = None):
        super().__init__(reason)
        self.errors = errors or []

    @property
    def user_message(self) -> str:
        return ANALYSIS_FAILED_MESSAGE


class DictationError(DesiShieldError):
    kind = "dictation"


class CapabilityUnavailableError(DictationError):
    """Speech capture is not available in this environment."""

    kind = "unavailable"

    def __init__(self, message: str = DICTATION_UNAVAILABLE_MESSAGE):
        super().__init__(message)


class DictationFailedError(DictationError):
    """The speech collaborator failed mid-recording."""

    kind = "dictation_failed"

    def __init__(self, reason: str = DICTATION_FAILED_MESSAGE):
        super().__init__(reason)

    @property
    def user_message(self) -> str:
        return DICTATION_FAILED_MESSAGE
