from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Label(str, Enum):
    """Verdict returned by the classifier and chosen by users in feedback."""
    SAFE = "Safe"
    SUSPICIOUS = "Suspicious"
    PHISHING = "Phishing"


class RiskBand(str, Enum):
    """Score bucket used for display emphasis."""
    LOW = "low"  # score < 30
    MEDIUM = "medium"  # 30 <= score < 70
    HIGH = "high"  # score >= 70


class AnalysisResult(BaseModel):
    """
    Structured risk verdict for one analyzed message.

    Field names follow Python conventions; the classifier's camelCase keys are
    accepted as aliases and restored by ``to_payload()``. Any violation of the
    constraints below rejects the whole payload, nothing is clamped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    label: Label
    score: int = Field(ge=0, le=100, strict=True)
    language: str
    reasoning: str
    triggered_rules: Tuple[str, ...] = Field(alias="triggeredRules")
    threat_type: str = Field(alias="threatType")
    highlighted_terms: Tuple[str, ...] = Field(alias="highlightedTerms")

    @field_validator("language", "reasoning")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def to_payload(self) -> Dict[str, Any]:
        """camelCase dict, identical in shape to the classifier's JSON object."""
        return self.model_dump(by_alias=True, mode="json")


class FeedbackEntry(BaseModel):
    """A user's corrective judgment on one analysis, copied by value."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    message: str
    predicted_label: Label
    user_label: Label
    language: str
    score: int

    @property
    def agrees(self) -> bool:
        return self.predicted_label == self.user_label

    def csv_row(self) -> List[Any]:
        return [
            self.timestamp,
            self.message,
            self.predicted_label.value,
            self.user_label.value,
            self.language,
            self.score,
        ]


class DemoCase(BaseModel):
    """Sample message offered as a one-click demo."""
    id: str
    title: str
    text: str
    type: str
