from __future__ import annotations  # Re-export llm_gateway public API

from .adapters import (
    ChatCompletionsAdapter,
    GeminiAdapter,
    ProviderAdapter,
    build_adapter,
    build_adapters,
)
from .gateway import HttpClient, HttpResponse, LlmGatewayError, ProviderUnavailable, post_json

__all__ = [
    "ChatCompletionsAdapter",
    "GeminiAdapter",
    "ProviderAdapter",
    "build_adapter",
    "build_adapters",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "ProviderUnavailable",
    "post_json",
]
