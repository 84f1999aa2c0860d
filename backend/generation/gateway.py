"""OpenAI-compatible LLM gateway client.

Every content-generation routine goes through LLMGateway. The gateway
speaks the OpenAI chat-completions protocol (configurable base_url), so
hosted gateways and self-hosted compatible servers both work.

Status 429 and 402 are surfaced as LLMRateLimitError and LLMCreditsError
so callers can tell throttling from exhausted credits. The gateway does
not retry; retry policy belongs to the caller.
"""

import json
import logging
import threading

import openai
from openai import OpenAI

from error_handler import (
    ConfigurationError,
    LLMCreditsError,
    LLMGatewayError,
    LLMRateLimitError,
    LLMResponseError,
)
from generation.llm_utils import strip_code_fences

logger = logging.getLogger(__name__)


class LLMGateway:
    """Thin wrapper over the OpenAI SDK with error classification."""

    def __init__(self, base_url: str, api_key: str, model: str,
                 timeout: int = 120, temperature: float = 0.7):
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> OpenAI:
        """Get or create the OpenAI client (lazy initialization, thread-safe)."""
        if not self.api_key:
            raise ConfigurationError(
                "AI service not configured",
                troubleshooting="Set SEOPILOT_LLM_API_KEY to enable content generation.",
            )
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = OpenAI(
                        api_key=self.api_key,
                        base_url=self.base_url,
                        timeout=self.timeout,
                        max_retries=0,
                    )
        return self._client

    def _create(self, messages: list, model: str = None, **kwargs):
        client = self._get_client()
        try:
            return client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                **kwargs,
            )
        except openai.RateLimitError as e:
            logger.warning("LLM gateway rate limited: %s", e)
            raise LLMRateLimitError() from e
        except openai.APIStatusError as e:
            if e.status_code == 429:
                raise LLMRateLimitError() from e
            if e.status_code == 402:
                logger.warning("LLM gateway reports insufficient credits")
                raise LLMCreditsError() from e
            logger.error("LLM gateway HTTP %d: %s", e.status_code, e)
            raise LLMGatewayError(
                f"AI service error ({e.status_code})", context={"status": e.status_code}
            ) from e
        except openai.APIConnectionError as e:
            logger.error("LLM gateway unreachable at %s: %s", self.base_url, e)
            raise LLMGatewayError(f"AI service unreachable: {e}") from e

    def complete(self, messages: list, model: str = None) -> str:
        """Free-text completion, stripped. Empty output raises LLMResponseError."""
        completion = self._create(messages, model=model, temperature=self.temperature)
        choices = completion.choices or []
        content = choices[0].message.content if choices else None
        text = (content or "").strip()
        if not text:
            raise LLMResponseError("Empty response from AI")
        return text

    def complete_json(self, messages: list, model: str = None) -> dict:
        """Completion parsed as a JSON object, code fences removed."""
        text = self.complete(messages, model=model)
        try:
            data = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON from AI: %.200s", text)
            raise LLMResponseError("Invalid JSON response from AI") from e
        if not isinstance(data, dict):
            raise LLMResponseError("Invalid JSON response from AI")
        return data

    def extract_structured(self, messages: list, tool_name: str,
                           parameters_schema: dict, description: str = "") -> dict:
        """Force a single function tool call and return its parsed arguments."""
        tool = {
            "type": "function",
            "function": {
                "name": tool_name,
                "description": description or tool_name,
                "parameters": parameters_schema,
            },
        }
        completion = self._create(
            messages,
            tools=[tool],
            tool_choice={"type": "function", "function": {"name": tool_name}},
        )
        choices = completion.choices or []
        tool_calls = (choices[0].message.tool_calls or []) if choices else []
        if not tool_calls:
            raise LLMResponseError(f"AI did not call {tool_name}")
        try:
            return json.loads(tool_calls[0].function.arguments)
        except (json.JSONDecodeError, TypeError) as e:
            raise LLMResponseError(f"Invalid {tool_name} arguments from AI") from e
