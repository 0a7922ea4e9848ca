import logging
from typing import Any, Dict, Optional

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from desishield.config import settings
from desishield.utils.errors import AnalysisTransportError, MISSING_CREDENTIALS_MESSAGE

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = (
    "You are a world-class cybersecurity expert specializing in Indian phishing patterns. "
    "Detect scams involving KYC, Banking, Electricity bills, and Lottery. "
    "Be aware of English, Hindi, Tamil, Hinglish, Tamil-English, and other code-mixed variations. "
    "Return ONLY a single JSON object that matches the provided schema."
)

# Output contract sent to the model. Strict mode makes every key required and
# forbids extra keys; the client still validates the answer on its own.
ANALYSIS_RESULT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "label": {
            "type": "string",
            "enum": ["Safe", "Suspicious", "Phishing"],
        },
        "score": {
            "type": "integer",
            "minimum": 0,
            "maximum": 100,
            "description": "Risk score from 0 (safe) to 100 (high risk)",
        },
        "language": {
            "type": "string",
            "description": "Detected language (e.g., Hinglish, Hindi, English, Tamil)",
        },
        "reasoning": {
            "type": "string",
            "description": "Explanation of why this label was chosen",
        },
        "triggeredRules": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Identified risk categories like 'Urgency', 'Impersonation', 'Bad Link'",
        },
        "threatType": {
            "type": "string",
            "description": "Type of threat, e.g., 'Banking Fraud', 'Lottery Scam'",
        },
        "highlightedTerms": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Specific words in the original message that triggered risk",
        },
    },
    "required": [
        "label",
        "score",
        "language",
        "reasoning",
        "triggeredRules",
        "threatType",
        "highlightedTerms",
    ],
    "additionalProperties": False,
}


def build_user_prompt(message: str) -> str:
    return (
        "Analyze the following message for phishing/scam potential in the Indian context "
        "(consider Indian languages and code-mixed text like Hinglish): "
        f'"{message}"'
    )


class LLMClient:
    """
    Wrapper around the OpenAI client for message risk classification.

    ``classify`` returns the model's raw JSON text; decoding and validation are
    the caller's job. Every failure is raised as AnalysisTransportError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.timeout = timeout if timeout is not None else settings.openai_timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            # One attempt per user action: the SDK's own retries are disabled.
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def request_payload(self, message: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "analysis_result",
                    "strict": True,
                    "schema": ANALYSIS_RESULT_SCHEMA,
                },
            },
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": build_user_prompt(message)},
            ],
        }

    async def classify(self, message: str) -> str:
        if not self.api_key.strip():
            raise AnalysisTransportError(MISSING_CREDENTIALS_MESSAGE)

        try:
            response = await self.client.chat.completions.create(**self.request_payload(message))
        except APITimeoutError as e:
            logger.warning(f"Classifier call timed out after {self.timeout}s: {e}")
            raise AnalysisTransportError("The analysis service timed out. Please try again.") from e
        except OpenAIError as e:
            logger.warning(f"OpenAI API error during classification: {e}")
            raise AnalysisTransportError(str(e) or "The analysis service is unavailable.") from e

        choice = response.choices[0] if response.choices else None
        if choice is None:
            raise AnalysisTransportError("The analysis service returned no answer.")

        refusal = getattr(choice.message, "refusal", None)
        if refusal:
            raise AnalysisTransportError(f"The analysis service declined the request: {refusal}")

        return choice.message.content or ""
