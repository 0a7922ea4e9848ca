"""Tests for the OpenAI classifier wrapper."""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from desishield.services.llm_client import (
    ANALYSIS_RESULT_SCHEMA,
    SYSTEM_INSTRUCTION,
    LLMClient,
    build_user_prompt,
)
from desishield.utils.errors import AnalysisTransportError, MISSING_CREDENTIALS_MESSAGE


class FakeCompletions:
    def __init__(self, content=None, error=None, refusal=None):
        self.content = content
        self.error = error
        self.refusal = refusal
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content, refusal=self.refusal)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(completions, api_key="test-key"):
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMClient(api_key=api_key, model="gpt-4o-mini", client=sdk)


def _request():
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestRequestPayload:
    """Tests for what is sent to the classifier."""

    def test_uses_strict_json_schema(self):
        payload = LLMClient(api_key="k", model="gpt-4o-mini").request_payload("hi")

        response_format = payload["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True
        assert response_format["json_schema"]["schema"] is ANALYSIS_RESULT_SCHEMA

    def test_schema_constrains_label_and_score(self):
        props = ANALYSIS_RESULT_SCHEMA["properties"]

        assert props["label"]["enum"] == ["Safe", "Suspicious", "Phishing"]
        assert props["score"]["type"] == "integer"
        assert props["score"]["minimum"] == 0
        assert props["score"]["maximum"] == 100
        assert ANALYSIS_RESULT_SCHEMA["additionalProperties"] is False
        assert set(ANALYSIS_RESULT_SCHEMA["required"]) == set(props)

    def test_domain_framing_in_system_instruction(self):
        for topic in ["KYC", "Banking", "Electricity", "Lottery", "Hinglish", "Tamil", "Hindi"]:
            assert topic in SYSTEM_INSTRUCTION

    def test_message_in_user_prompt(self):
        payload = LLMClient(api_key="k").request_payload("Your KYC expires")
        messages = payload["messages"]

        assert messages[0] == {"role": "system", "content": SYSTEM_INSTRUCTION}
        assert messages[1]["role"] == "user"
        assert messages[1]["content"] == build_user_prompt("Your KYC expires")
        assert '"Your KYC expires"' in messages[1]["content"]


class TestClassify:
    """Tests for LLMClient.classify."""

    @pytest.mark.asyncio
    async def test_returns_raw_content(self, lottery_payload):
        completions = FakeCompletions(content=json.dumps(lottery_payload))
        client = make_client(completions)

        raw = await client.classify("hello")

        assert json.loads(raw) == lottery_payload
        assert len(completions.calls) == 1
        assert completions.calls[0]["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", ["", "   "])
    async def test_missing_credentials_fail_before_call(self, api_key):
        completions = FakeCompletions(content="{}")
        client = make_client(completions, api_key=api_key)

        with pytest.raises(AnalysisTransportError) as exc_info:
            await client.classify("hello")

        assert str(exc_info.value) == MISSING_CREDENTIALS_MESSAGE
        assert completions.calls == []

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_error(self):
        completions = FakeCompletions(error=openai.APIConnectionError(request=_request()))

        with pytest.raises(AnalysisTransportError) as exc_info:
            await make_client(completions).classify("hello")

        assert "Connection error" in exc_info.value.user_message
        assert len(completions.calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        completions = FakeCompletions(error=openai.APITimeoutError(request=_request()))

        with pytest.raises(AnalysisTransportError) as exc_info:
            await make_client(completions).classify("hello")

        assert "timed out" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_refusal_is_transport_error(self):
        completions = FakeCompletions(content=None, refusal="I can't help with that.")

        with pytest.raises(AnalysisTransportError):
            await make_client(completions).classify("hello")

    @pytest.mark.asyncio
    async def test_empty_content_returned_as_empty_string(self):
        """Empty answers are left for the decoder to reject."""
        completions = FakeCompletions(content=None)
        assert await make_client(completions).classify("hello") == ""

    def test_sdk_client_disables_retries(self):
        client = LLMClient(api_key="test-key", timeout=12.0)
        assert client.client.max_retries == 0
        assert client.client.timeout == 12.0
