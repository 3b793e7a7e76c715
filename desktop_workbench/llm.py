from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import ProviderError


@dataclass(frozen=True)
class LargeLanguageModel:
    name: str
    input_price_per_million: float
    output_price_per_million: float


# Standard-tier USD prices per 1M tokens.
AVAILABLE_MODELS: List[LargeLanguageModel] = [
    LargeLanguageModel("gpt-5-mini", 0.25, 2.00),
    LargeLanguageModel("gpt-5-nano", 0.05, 0.40),
    LargeLanguageModel("gpt-4.1-mini", 0.40, 1.60),
    LargeLanguageModel("gpt-4.1-nano", 0.10, 0.40),
    LargeLanguageModel("gpt-4o-mini", 0.15, 0.60),
    LargeLanguageModel("gpt-3.5-turbo", 0.50, 1.50),
]


def find_model(name: str) -> Optional[LargeLanguageModel]:
    for m in AVAILABLE_MODELS:
        if m.name == name:
            return m
    return None


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> Tuple[float, float]:
    """(input, output) cost in USD; zero for models without a known price."""
    m = find_model(model)
    if m is None:
        return (0.0, 0.0)
    return (
        input_tokens * m.input_price_per_million / 1_000_000,
        output_tokens * m.output_price_per_million / 1_000_000,
    )


@dataclass
class Completion:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class LLMProvider:
    model: str = ""

    def generate(self, system: str, messages: List[Dict[str, str]]) -> Completion:  # pragma: no cover - interface
        raise NotImplementedError


class OpenAICompatProvider(LLMProvider):
    def __init__(self, model: str, api_key: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self.model = model
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        try:
            from openai import OpenAI  # type: ignore
        except Exception as e:  # noqa: BLE001
            raise RuntimeError("openai package is required for OpenAI-compatible providers") from e
        self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)

    def generate(self, system: str, messages: List[Dict[str, str]]) -> Completion:
        full_messages = [{"role": "system", "content": system}] + messages
        try:
            resp = self._client.chat.completions.create(  # type: ignore[attr-defined]
                model=self.model,
                messages=full_messages,
                response_format={"type": "json_object"},
            )
        except Exception as e:  # noqa: BLE001
            raise ProviderError(f"OpenAI request failed: {e}") from e
        content = resp.choices[0].message.content  # type: ignore[index]
        usage = getattr(resp, "usage", None)
        return Completion(
            text=content or "",
            input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        )


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str, api_key: Optional[str] = None) -> None:
        self.model = model
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        try:
            import anthropic  # type: ignore
        except Exception as e:  # noqa: BLE001
            raise RuntimeError("anthropic package is required for Claude provider") from e
        self._client = anthropic.Anthropic(api_key=self.api_key)

    def generate(self, system: str, messages: List[Dict[str, str]]) -> Completion:
        conv: List[Dict[str, Any]] = [{"role": m["role"], "content": m["content"]} for m in messages]
        try:
            resp = self._client.messages.create(  # type: ignore[arg-type]
                model=self.model,
                max_tokens=4096,
                temperature=0.2,
                system=system,
                messages=conv,
            )
        except Exception as e:  # noqa: BLE001
            raise ProviderError(f"Anthropic request failed: {e}") from e
        text = "".join(getattr(part, "text", "") for part in (getattr(resp, "content", None) or []))
        usage = getattr(resp, "usage", None)
        return Completion(
            text=text,
            input_tokens=int(getattr(usage, "input_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "output_tokens", 0) or 0),
        )


def build_provider(provider: str, model: str, api_key: Optional[str] = None, base_url: Optional[str] = None) -> LLMProvider:
    p = provider.lower()
    if p in ("openai", "openai_compat"):
        return OpenAICompatProvider(model=model, api_key=api_key, base_url=base_url)
    if p in ("xai", "x-ai"):
        # xAI Grok is OpenAI-compatible
        base = base_url or os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")
        key = api_key or os.getenv("XAI_API_KEY")
        return OpenAICompatProvider(model=model, api_key=key, base_url=base)
    if p in ("lmstudio", "lm-studio", "lm_studio"):
        base = base_url or os.getenv("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")
        key = api_key or os.getenv("LMSTUDIO_API_KEY", "lm-studio")
        return OpenAICompatProvider(model=model, api_key=key, base_url=base)
    if p in ("anthropic", "claude"):
        key = api_key or os.getenv("ANTHROPIC_API_KEY")
        return AnthropicProvider(model=model, api_key=key)
    if p in ("local", "local-openai", "local_openai"):
        base = base_url or os.getenv("OPENAI_BASE_URL", "http://localhost:11434/v1")
        key = api_key or os.getenv("OPENAI_API_KEY", "local")
        return OpenAICompatProvider(model=model, api_key=key, base_url=base)
    raise ValueError(f"Unknown provider: {provider}")
