"""Content generation through an OpenAI-compatible LLM gateway.

get_gateway() returns a process-wide LLMGateway built from settings;
reset_gateway() drops it so the next call picks up reloaded settings.
"""

import threading

from config import get_settings
from generation.gateway import LLMGateway

_gateway = None
_gateway_lock = threading.Lock()


def get_gateway() -> LLMGateway:
    """Get or create the singleton LLMGateway."""
    global _gateway
    if _gateway is None:
        with _gateway_lock:
            if _gateway is None:
                settings = get_settings()
                _gateway = LLMGateway(
                    base_url=settings.llm_base_url,
                    api_key=settings.llm_api_key,
                    model=settings.llm_model,
                    timeout=settings.llm_request_timeout,
                    temperature=settings.llm_temperature,
                )
    return _gateway


def reset_gateway() -> None:
    global _gateway
    with _gateway_lock:
        _gateway = None
