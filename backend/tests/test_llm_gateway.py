"""Tests for generation/gateway.py and generation/llm_utils.py."""

from unittest.mock import MagicMock

import httpx
import openai
import pytest

from error_handler import (
    ConfigurationError,
    LLMCreditsError,
    LLMGatewayError,
    LLMRateLimitError,
    LLMResponseError,
)
from generation import get_gateway, reset_gateway
from generation.gateway import LLMGateway
from generation.llm_utils import (
    build_alt_text_prompt,
    build_long_description_prompt,
    build_translation_prompt,
    language_name,
    parse_json_response,
    strip_code_fences,
    truncate_meta_description,
)

_REQUEST = httpx.Request("POST", "https://llm.example.com/v1/chat/completions")


def _completion(content=None, tool_arguments=None):
    message = MagicMock()
    message.content = content
    if tool_arguments is None:
        message.tool_calls = None
    else:
        call = MagicMock()
        call.function.arguments = tool_arguments
        message.tool_calls = [call]
    choice = MagicMock()
    choice.message = message
    completion = MagicMock()
    completion.choices = [choice]
    return completion


def _status_error(cls, status):
    return cls(f"HTTP {status}", response=httpx.Response(status, request=_REQUEST), body=None)


@pytest.fixture
def gateway():
    gw = LLMGateway(base_url="https://llm.example.com/v1", api_key="sk-test", model="test-model")
    gw._client = MagicMock()
    return gw


class TestLLMGateway:

    def test_complete_strips_text(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion("  Bonjour  \n")
        assert gateway.complete([{"role": "user", "content": "salut"}]) == "Bonjour"
        kwargs = gateway._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.7

    def test_empty_completion_raises(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion("   ")
        with pytest.raises(LLMResponseError):
            gateway.complete([])

    def test_complete_json_strips_fences(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion('```json\n{"name": "Sac"}\n```')
        assert gateway.complete_json([]) == {"name": "Sac"}

    def test_complete_json_invalid(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion("pas du json")
        with pytest.raises(LLMResponseError):
            gateway.complete_json([])

    def test_complete_json_rejects_arrays(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion("[1, 2]")
        with pytest.raises(LLMResponseError):
            gateway.complete_json([])

    def test_rate_limit_maps_to_rate_limit_error(self, gateway):
        gateway._client.chat.completions.create.side_effect = _status_error(openai.RateLimitError, 429)
        with pytest.raises(LLMRateLimitError) as exc_info:
            gateway.complete([])
        assert "429" in str(exc_info.value)

    def test_payment_required_maps_to_credits_error(self, gateway):
        gateway._client.chat.completions.create.side_effect = _status_error(openai.APIStatusError, 402)
        with pytest.raises(LLMCreditsError) as exc_info:
            gateway.complete([])
        assert "402" in str(exc_info.value)

    def test_other_status_maps_to_gateway_error(self, gateway):
        gateway._client.chat.completions.create.side_effect = _status_error(openai.InternalServerError, 500)
        with pytest.raises(LLMGatewayError) as exc_info:
            gateway.complete([])
        assert exc_info.value.context == {"status": 500}
        assert not isinstance(exc_info.value, (LLMRateLimitError, LLMCreditsError))

    def test_connection_error(self, gateway):
        gateway._client.chat.completions.create.side_effect = openai.APIConnectionError(request=_REQUEST)
        with pytest.raises(LLMGatewayError):
            gateway.complete([])

    def test_missing_api_key(self):
        gw = LLMGateway(base_url="https://llm.example.com/v1", api_key="", model="m")
        with pytest.raises(ConfigurationError):
            gw.complete([])

    def test_extract_structured(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion(
            tool_arguments='{"keywords": ["a", "b"]}')
        data = gateway.extract_structured([], "extract_keywords", {"type": "object"})
        assert data == {"keywords": ["a", "b"]}
        kwargs = gateway._client.chat.completions.create.call_args.kwargs
        assert kwargs["tool_choice"]["function"]["name"] == "extract_keywords"

    def test_extract_structured_without_tool_call(self, gateway):
        gateway._client.chat.completions.create.return_value = _completion("texte libre")
        with pytest.raises(LLMResponseError):
            gateway.extract_structured([], "extract_keywords", {"type": "object"})


def test_get_gateway_singleton_uses_settings(temp_db):
    reset_gateway()
    gw = get_gateway()
    assert gw is get_gateway()
    assert gw.api_key == "test-key"
    reset_gateway()
    assert get_gateway() is not gw
    reset_gateway()


class TestLLMUtils:

    @pytest.mark.parametrize("raw,expected", [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}```', '{"a": 1}'),
        ('{"a": 1}', '{"a": 1}'),
    ])
    def test_strip_code_fences(self, raw, expected):
        assert strip_code_fences(raw) == expected

    def test_parse_json_response(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
        assert parse_json_response("nope") is None
        assert parse_json_response("[1]") is None

    def test_truncate_meta_description(self):
        assert truncate_meta_description('"Court"') == "Court"
        long_text = "x" * 200
        truncated = truncate_meta_description(long_text)
        assert len(truncated) == 160
        assert truncated.endswith("...")

    def test_language_name(self):
        assert language_name("en") == "anglais"
        assert language_name("sv") == "sv"

    def test_long_description_prompt_includes_current_text(self):
        prompt = build_long_description_prompt({"name": "Sac", "description": "<p>Ancien</p>"}, "français")
        assert "Description actuelle à améliorer : <p>Ancien</p>" in prompt
        assert "Être en langue français" in prompt

    def test_alt_text_prompt_differs_for_secondary_images(self):
        product = {"name": "Sac", "categories": [{"name": "Maroquinerie"}]}
        assert "image principale" in build_alt_text_prompt(product, 0, 3)
        assert "Image 2 sur 3" in build_alt_text_prompt(product, 1, 3)

    def test_translation_prompt_uses_language_name(self):
        prompt = build_translation_prompt({"name": "Sac"}, "de")
        assert "en allemand" in prompt
