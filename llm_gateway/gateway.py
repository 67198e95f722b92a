from __future__ import annotations  # Async HTTP transport shared by provider adapters

import logging
from typing import Any, Dict, Optional, Protocol

import httpx


logger = logging.getLogger(__name__)  # Module logger setup


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class HttpClient(Protocol):  # Minimal async HTTP client protocol
    async def post(
        self,
        url: str,
        *,
        json: Dict[str, Any],
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
        timeout: float,
    ) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class ProviderUnavailable(LlmGatewayError):  # Credential missing or malformed; never retried
    pass


async def post_json(
    url: str,
    payload: Dict[str, Any],
    *,
    headers: Dict[str, str],
    timeout: float,
    params: Optional[Dict[str, str]] = None,
    client: Optional[HttpClient] = None,
) -> Any:  # POST a JSON body and return the decoded JSON reply
    try:
        if client is not None:
            response = await client.post(url, json=payload, headers=headers, params=params, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as http_client:
                response = await http_client.post(url, json=payload, headers=headers, params=params)
    except Exception as exc:  # noqa: BLE001
        logger.warning("LLM transport failure url=%s error=%s", url, exc)
        raise LlmGatewayError("LLM transport failed") from exc
    if response.status_code >= 400:
        logger.warning("LLM error status url=%s status=%s", url, response.status_code)
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        return response.json()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Invalid JSON payload from LLM: %s", exc)
        raise LlmGatewayError("LLM payload was not JSON") from exc


def extract_chat_content(data: Any) -> str:  # Pull message text out of a chat-completions reply
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str) and content.strip():
                return content.strip()
        if isinstance(data.get("content"), str) and data["content"].strip():
            return data["content"].strip()
    raise LlmGatewayError("LLM response missing content")


def extract_gemini_content(data: Any) -> str:  # Pull text out of a generateContent reply
    if not isinstance(data, dict):
        raise LlmGatewayError("Unexpected Gemini response shape")
    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        raise LlmGatewayError(f"Response blocked by safety filters: {feedback['blockReason']}")
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        candidate = candidates[0]
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if parts is None and isinstance(content, list) and content and isinstance(content[0], dict):
            parts = content[0].get("parts")
        if isinstance(parts, list):
            texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
            joined = "\n".join(text for text in texts if text).strip()
            if joined:
                return joined
        output_text = candidate.get("output_text")
        if isinstance(output_text, str) and output_text.strip():
            return output_text.strip()
    if isinstance(data.get("text"), str) and data["text"].strip():
        return data["text"].strip()
    raise LlmGatewayError("Unexpected Gemini response shape")


def preview(text: str, limit: int = 120) -> str:  # First line of a prompt for logging
    for line in text.strip().splitlines():
        if line.strip():
            first = line.strip()
            return first if len(first) <= limit else first[: limit - 3] + "..."
    return ""
