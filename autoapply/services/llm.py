import json
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from autoapply.core.config import Settings
from autoapply.core.errors import BackendError, BackendUnavailable

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_BASE_URLS = {
    "groq": "https://api.groq.com/openai/v1",
    "ollama": "http://localhost:11434/v1",
}

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", flags=re.DOTALL | re.IGNORECASE)


class LLMProvider(ABC):
    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError


class OpenAICompatibleLLMProvider(LLMProvider):
    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("LLM_API_KEY is required for a configured LLM provider")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise BackendError(f"LLM request failed: {exc}") from exc

        if response.status_code >= 400:
            raise BackendError(
                f"LLM request failed ({response.status_code}): {response.text[:300]}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError("LLM response was not valid JSON") from exc
        content = (
            (data.get("choices") or [{}])[0]
            .get("message", {})
            .get("content", "")
        )
        if not content:
            raise BackendError("LLM response missing content")
        return str(content).strip()


def parse_json_payload(text: str) -> Any:
    """Parse model output as JSON, accepting a surrounding Markdown code fence."""
    cleaned = (text or "").strip()
    fenced = CODE_FENCE_PATTERN.match(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise BackendError(f"Malformed JSON from model: {exc.msg}") from exc


class LLMGateway:
    """Access point to the language model.

    A gateway is either unconfigured (no provider, demo mode) or wraps a
    provider. Availability never changes after construction, so stages read
    ``available`` once and pick their demo or backend behaviour up front.
    """

    def __init__(self, provider: LLMProvider | None = None) -> None:
        self._provider = provider

    @classmethod
    def unconfigured(cls) -> "LLMGateway":
        return cls(None)

    @property
    def available(self) -> bool:
        return self._provider is not None

    async def invoke(self, system_prompt: str, user_prompt: str) -> str:
        if self._provider is None:
            raise BackendUnavailable("No language-model backend is configured")
        try:
            return await self._provider.complete(system_prompt, user_prompt)
        except BackendError:
            raise
        except Exception as exc:
            raise BackendError(str(exc) or exc.__class__.__name__) from exc

    async def invoke_json(self, system_prompt: str, user_prompt: str) -> Any:
        return parse_json_payload(await self.invoke(system_prompt, user_prompt))


def build_llm_provider(settings: Settings) -> LLMProvider | None:
    raw_provider = (settings.llm_provider or "").strip()
    provider = raw_provider.lower()

    if provider.startswith("sk-") or provider.startswith("gsk_"):
        raise ValueError(
            "LLM_PROVIDER appears to contain an API key. Set LLM_PROVIDER to 'openai', 'groq' "
            "or 'ollama' and move the key to LLM_API_KEY."
        )
    if not settings.llm_api_key:
        return None
    if provider not in {"openai", "openai_compatible", "groq", "ollama"}:
        raise ValueError("Unsupported LLM_PROVIDER. Supported values: openai, groq, ollama.")

    base_url = settings.llm_base_url
    if provider in DEFAULT_BASE_URLS and (not base_url or base_url == OPENAI_BASE_URL):
        base_url = DEFAULT_BASE_URLS[provider]
    return OpenAICompatibleLLMProvider(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=base_url,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def build_llm_gateway(settings: Settings) -> LLMGateway:
    return LLMGateway(build_llm_provider(settings))
