from __future__ import annotations  # Configuration schema for AI provider routing

from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


ProviderKind = Literal["chat_completions", "gemini"]
QuestionFormat = Literal["json", "numbered"]


class ProviderRoute(BaseModel):  # One AI backend and its ordered model list
    name: str
    kind: ProviderKind = "chat_completions"
    base_url: str
    endpoint: str
    models: List[str] = Field(min_length=1)
    api_key_env: str
    key_prefix: Optional[str] = None
    min_key_length: int = Field(default=10, ge=1)
    question_format: QuestionFormat = "json"
    response_format: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):  # Application configuration root
    providers: List[ProviderRoute] = Field(default_factory=list)


def default_providers() -> List[ProviderRoute]:  # Built-in provider priority order
    return [
        ProviderRoute(
            name="perplexity",
            base_url="https://api.perplexity.ai",
            endpoint="/chat/completions",
            models=[
                "llama-3.1-sonar-small-128k-online",
                "llama-3.1-sonar-large-128k-online",
                "sonar-small-online",
                "sonar-medium-online",
                "sonar",
            ],
            api_key_env="PERPLEXITY_API_KEY",
            key_prefix="pplx-",
            min_key_length=30,
            question_format="numbered",
        ),
        ProviderRoute(
            name="openrouter",
            base_url="https://openrouter.ai/api/v1",
            endpoint="/chat/completions",
            models=["anthropic/claude-3-sonnet:beta", "anthropic/claude-3-opus:beta"],
            api_key_env="OPENROUTER_API_KEY",
            response_format="json_object",
            extra_headers={"X-Title": "Interview Assistant"},
        ),
        ProviderRoute(
            name="openai",
            base_url="https://api.openai.com/v1",
            endpoint="/chat/completions",
            models=["gpt-4o-mini"],
            api_key_env="OPENAI_API_KEY",
        ),
        ProviderRoute(
            name="gemini",
            kind="gemini",
            base_url="https://generativelanguage.googleapis.com/v1",
            endpoint="/models/{model}:generateContent",
            models=[
                "gemini-pro",
                "gemini-2.5-flash-latest",
                "gemini-2.5-flash",
                "gemini-1.5-flash-latest",
                "gemini-1.5-flash",
            ],
            api_key_env="GEMINI_API_KEY",
        ),
    ]


def default_config() -> AppConfig:  # Config used when no override file exists
    return AppConfig(providers=default_providers())


def load_config(path: Path) -> AppConfig:  # Load provider configuration from disk
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def load_config_or_default(path: Optional[Path]) -> AppConfig:  # Prefer override file, else built-ins
    if path is not None and path.exists():
        return load_config(path)
    return default_config()
