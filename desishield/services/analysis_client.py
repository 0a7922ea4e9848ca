"""
Analysis client: turns a message into a validated AnalysisResult.

Exactly one classifier call per ``analyze``; no caching, no retries. Any
response that does not decode to a complete, in-range AnalysisResult is
rejected as a whole.
"""

import time
from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import ValidationError

from desishield.schemas.analysis_schemas import AnalysisResult
from desishield.services.llm_client import LLMClient
from desishield.utils.errors import (
    AnalysisSchemaError,
    AnalysisTransportError,
    InputRejectedError,
)
from desishield.utils.logging_config import StructuredLogger, metrics
from desishield.utils.preprocessing import is_blank, preview_text

logger = StructuredLogger(__name__)


class Classifier(Protocol):
    """External classifier collaborator: message in, raw JSON out."""

    async def classify(self, message: str) -> Union[str, bytes, Dict[str, Any]]:
        ...


def _format_validation_errors(exc: ValidationError) -> List[str]:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        problems.append(f"{location}: {err.get('msg')}")
    return problems


def decode_analysis_result(raw: Union[str, bytes, Dict[str, Any]]) -> AnalysisResult:
    """
    Decode a classifier payload into an AnalysisResult.

    Raises:
        AnalysisSchemaError: payload is not JSON, or violates any field constraint
    """
    try:
        if isinstance(raw, dict):
            return AnalysisResult.model_validate(raw)
        return AnalysisResult.model_validate_json(raw)
    except ValidationError as e:
        problems = _format_validation_errors(e)
        raise AnalysisSchemaError(
            "Classifier response does not match the analysis schema", errors=problems
        ) from e


class AnalysisClient:
    def __init__(self, classifier: Optional[Classifier] = None):
        self.classifier = classifier if classifier is not None else LLMClient()

    async def analyze(self, message: str) -> AnalysisResult:
        """
        Classify one message.

        Raises:
            InputRejectedError: message is blank; the classifier is not called
            AnalysisTransportError: the classifier call failed
            AnalysisSchemaError: the classifier answer is malformed
        """
        if is_blank(message):
            logger.info("Input rejected", reason="blank_message")
            raise InputRejectedError()

        metrics.increment("analysis.total")
        logger.info("Analysis started", chars=len(message), preview=preview_text(message))
        start = time.time()

        try:
            raw = await self.classifier.classify(message)
        except AnalysisTransportError as e:
            metrics.increment("analysis.errors.transport")
            logger.warning("Analysis failed", kind=e.kind, reason=str(e))
            raise

        try:
            result = decode_analysis_result(raw)
        except AnalysisSchemaError as e:
            metrics.increment("analysis.errors.schema")
            logger.warning("Analysis failed", kind=e.kind, reason=str(e), errors=e.errors)
            raise

        duration = time.time() - start
        metrics.timing("analysis.latency", duration)
        metrics.increment(f"analysis.label.{result.label.value.lower()}")
        logger.info(
            "Analysis completed",
            label=result.label.value,
            score=result.score,
            duration_ms=round(duration * 1000, 2),
        )
        return result
