"""Adapters around hosted chat-completion providers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger

_AUTO_API_KEY = object()

logger = get_logger("llm")


class ProviderError(RuntimeError):
    """Raised when a provider request fails or returns nothing usable."""

    def __init__(self, message: str, *, provider: str, status: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of one provider's endpoint and environment keys."""

    name: str
    label: str
    wire: str
    base_url: str
    default_model: str
    env_api_keys: Tuple[str, ...]
    env_model_keys: Tuple[str, ...] = ()


PROVIDERS: Dict[str, ProviderSpec] = {
    "cerebras": ProviderSpec(
        name="cerebras",
        label="Cerebras",
        wire="openai",
        base_url="https://api.cerebras.ai/v1",
        default_model="qwen-3-coder-480b",
        env_api_keys=("SITECRAFT_API_KEY", "CEREBRAS_API_KEY"),
        env_model_keys=("SITECRAFT_MODEL", "CEREBRAS_MODEL"),
    ),
    "openai": ProviderSpec(
        name="openai",
        label="OpenAI",
        wire="openai",
        base_url="https://api.openai.com/v1",
        default_model="gpt-4o-mini",
        env_api_keys=("SITECRAFT_API_KEY", "OPENAI_API_KEY"),
        env_model_keys=("SITECRAFT_MODEL", "OPENAI_MODEL"),
    ),
    "anthropic": ProviderSpec(
        name="anthropic",
        label="Anthropic",
        wire="anthropic",
        base_url="https://api.anthropic.com/v1",
        default_model="claude-3-5-sonnet-latest",
        env_api_keys=("SITECRAFT_API_KEY", "ANTHROPIC_API_KEY"),
        env_model_keys=("SITECRAFT_MODEL", "ANTHROPIC_MODEL"),
    ),
    "gemini": ProviderSpec(
        name="gemini",
        label="Gemini",
        wire="gemini",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        default_model="gemini-2.5-flash",
        env_api_keys=("SITECRAFT_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
        env_model_keys=("SITECRAFT_MODEL", "GEMINI_MODEL"),
    ),
}

_ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class LLMRequest:
    """Represents one inference request sent to a provider."""

    prompt: str
    system: Optional[str]
    provider: str
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]
    stream: bool = False


class LLMRunner:
    """Executes prompts against the configured provider."""

    DEFAULT_PROVIDER = "cerebras"

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        *,
        base_url: str | None = None,
        temperature: Optional[float] = 0.1,
        max_tokens: Optional[int] = 8000,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 120.0,
        runner: Callable[[LLMRequest], str] | None = None,
        stream_runner: Callable[[LLMRequest], Iterable[str]] | None = None,
    ) -> None:
        name = (provider or os.getenv("SITECRAFT_PROVIDER") or self.DEFAULT_PROVIDER).lower()
        if name not in PROVIDERS:
            supported = ", ".join(sorted(PROVIDERS))
            raise ValueError(f"Unsupported provider '{name}'. Choose one of: {supported}")
        self.spec = PROVIDERS[name]
        self.model = model or _first_env_value(self.spec.env_model_keys) or self.spec.default_model
        self.base_url = (base_url or self.spec.base_url).rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        if api_key is _AUTO_API_KEY:
            self.api_key = _first_env_value(self.spec.env_api_keys)
        else:
            self.api_key = api_key  # type: ignore[assignment]
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner
        self._stream_runner = stream_runner
        if stream_runner is None and runner is None:
            self._stream_runner = self._http_stream_runner

    @property
    def provider(self) -> str:
        return self.spec.name

    def build_request(self, prompt: str, *, system: str | None = None, stream: bool = False) -> LLMRequest:
        return LLMRequest(
            prompt=prompt,
            system=system,
            provider=self.spec.name,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            stream=stream,
        )

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt and return the complete response text."""
        request = self.build_request(prompt, system=system)
        logger.info("Requesting completion from %s (%s)", self.spec.label, self.model)
        return self._runner(request)

    def stream(self, prompt: str, *, system: str | None = None) -> Iterator[str]:
        """Yield response text chunks as the provider produces them.

        An injected non-streaming ``runner`` yields its whole response as one chunk.
        """
        request = self.build_request(prompt, system=system, stream=True)
        logger.info("Streaming completion from %s (%s)", self.spec.label, self.model)
        if self._stream_runner is None:
            yield self._runner(request)
            return
        yield from self._stream_runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        spec = PROVIDERS[request.provider]
        http_request = _build_http_request(spec, request)
        timeout = request.request_timeout or 120.0
        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise _http_error(spec, exc) from exc
        except URLError as exc:
            raise ProviderError(
                f"{spec.label} API request failed: {exc.reason}", provider=spec.name
            ) from exc
        except OSError as exc:
            raise _connection_error(spec, exc) from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(f"{spec.label} API returned invalid JSON", provider=spec.name) from exc

        content = extract_content(spec.wire, payload)
        if not content:
            raise ProviderError(f"No content received from {spec.label} API", provider=spec.name)
        return content

    @staticmethod
    def _http_stream_runner(request: LLMRequest) -> Iterator[str]:
        spec = PROVIDERS[request.provider]
        http_request = _build_http_request(spec, request)
        timeout = request.request_timeout or 120.0
        try:
            response = urlopen(http_request, timeout=timeout)  # type: ignore[arg-type]
        except HTTPError as exc:
            raise _http_error(spec, exc) from exc
        except URLError as exc:
            raise ProviderError(
                f"{spec.label} API request failed: {exc.reason}", provider=spec.name
            ) from exc
        except OSError as exc:
            raise _connection_error(spec, exc) from exc
        with response:
            try:
                for data in iter_sse_data(response):
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug("Skipping undecodable stream event from %s", spec.label)
                        continue
                    delta = extract_delta(spec.wire, event)
                    if delta:
                        yield delta
            except OSError as exc:
                raise _connection_error(spec, exc) from exc


def _connection_error(spec: ProviderSpec, exc: OSError) -> ProviderError:
    return ProviderError(f"{spec.label} API connection failed: {exc}", provider=spec.name)


def _build_http_request(spec: ProviderSpec, request: LLMRequest) -> Request:
    if not request.api_key:
        raise ProviderError(f"{spec.label} API key not configured", provider=spec.name)

    headers = {"Content-Type": "application/json"}
    payload: Dict[str, object]
    if spec.wire == "anthropic":
        endpoint = f"{request.base_url}/messages"
        headers["x-api-key"] = request.api_key
        headers["anthropic-version"] = _ANTHROPIC_VERSION
        payload = {
            "model": request.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "max_tokens": request.max_tokens or 8000,
        }
        if request.system:
            payload["system"] = request.system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
    elif spec.wire == "gemini":
        action = "streamGenerateContent?alt=sse" if request.stream else "generateContent"
        endpoint = f"{request.base_url}/models/{request.model}:{action}"
        headers["x-goog-api-key"] = request.api_key
        generation: Dict[str, object] = {}
        if request.temperature is not None:
            generation["temperature"] = request.temperature
        if request.max_tokens is not None:
            generation["maxOutputTokens"] = request.max_tokens
        payload = {"contents": [{"role": "user", "parts": [{"text": request.prompt}]}]}
        if request.system:
            payload["systemInstruction"] = {"parts": [{"text": request.system}]}
        if generation:
            payload["generationConfig"] = generation
    else:
        endpoint = f"{request.base_url}/chat/completions"
        headers["Authorization"] = f"Bearer {request.api_key}"
        payload = {"model": request.model, "messages": build_messages(request.system, request.prompt)}
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

    if request.stream and spec.wire != "gemini":
        payload["stream"] = True
    data = json.dumps(payload).encode("utf-8")
    return Request(endpoint, data=data, headers=headers, method="POST")


def _http_error(spec: ProviderSpec, exc: HTTPError) -> ProviderError:
    detail = ""
    try:
        detail = exc.read().decode("utf-8", errors="ignore").strip()
    except (OSError, AttributeError):
        detail = ""
    if detail:
        logger.debug("%s error body: %s", spec.label, detail[:500])
    return ProviderError(
        f"{spec.label} API error: {exc.code} {exc.reason}",
        provider=spec.name,
        status=exc.code,
    )


def build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def extract_content(wire: str, payload: object) -> str:
    """Return the response text from a complete (non-streamed) provider payload."""
    if not isinstance(payload, dict):
        return ""
    if wire == "anthropic":
        blocks = payload.get("content")
        if not isinstance(blocks, list):
            return ""
        return "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
    if wire == "gemini":
        return _gemini_text(payload)
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content
    text = first.get("text")
    if isinstance(text, str):
        return text
    return ""


def extract_delta(wire: str, event: object) -> str:
    """Return the text carried by one streamed event."""
    if not isinstance(event, dict):
        return ""
    if wire == "anthropic":
        if event.get("type") != "content_block_delta":
            return ""
        delta = event.get("delta")
        if isinstance(delta, dict) and isinstance(delta.get("text"), str):
            return delta["text"]
        return ""
    if wire == "gemini":
        return _gemini_text(event)
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    if isinstance(delta, dict) and isinstance(delta.get("content"), str):
        return delta["content"]
    return ""


def _gemini_text(payload: dict) -> str:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    return "".join(
        part.get("text", "") for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def iter_sse_data(lines: Iterable[bytes]) -> Iterator[str]:
    """Yield the ``data:`` payloads of a server-sent event stream."""
    for raw in lines:
        line = raw.decode("utf-8", errors="replace").strip() if isinstance(raw, bytes) else str(raw).strip()
        if not line.startswith("data:"):
            continue
        yield line[len("data:"):].strip()


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = [
    "LLMRequest",
    "LLMRunner",
    "PROVIDERS",
    "ProviderError",
    "ProviderSpec",
    "build_messages",
    "extract_content",
    "extract_delta",
    "iter_sse_data",
]
