import logging
from dataclasses import dataclass
from typing import Any, Literal, TypedDict

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9
PHASE_TIMEOUT = 5.0  # pool, connect and write phases
STATUS_TIMEOUT = 5.0


class GenerationError(Exception):
    """The generation service did not return a usable response."""


class GenerationFailed(GenerationError):
    pass


class GenerationTimeout(GenerationError):
    pass


@dataclass(frozen=True)
class GenerationConfig:
    base_url: str = "http://localhost:11434"
    model: str = "llama3.2"
    timeout: float = 120.0  # seconds, hard ceiling per call
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P


class ChatTurn(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


def call_timeout(ceiling: float) -> httpx.Timeout:
    """Split a per-call ceiling across httpx's phases.

    httpx bounds each phase separately, so the phases share the ceiling and
    the read phase gets what is left. Ollama sends non-streamed replies in
    one body, so the read bound covers the wait for generation.
    """
    phase = min(PHASE_TIMEOUT, ceiling / 4)
    return httpx.Timeout(connect=phase, write=phase, pool=phase, read=ceiling - 3 * phase)


class OllamaClient:
    """Blocking client for an Ollama server.

    ``generate`` and ``chat`` raise ``GenerationTimeout`` when the configured
    ceiling is exceeded and ``GenerationFailed`` for any other transport,
    status or payload problem. ``is_available`` never raises.
    """

    def __init__(self, config: GenerationConfig, transport: httpx.BaseTransport | None = None):
        self.config = config
        self._http = httpx.Client(
            base_url=config.base_url,
            timeout=call_timeout(config.timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _options(self, temperature: float | None, top_p: float | None) -> dict[str, float]:
        return {
            "temperature": self.config.temperature if temperature is None else temperature,
            "top_p": self.config.top_p if top_p is None else top_p,
        }

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            r = self._http.post(path, json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.TimeoutException as exc:
            logger.error("Ollama %s timed out after %ss", path, self.config.timeout)
            raise GenerationTimeout(f"Ollama request timed out after {self.config.timeout}s") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Ollama %s error: %s", path, exc)
            raise GenerationFailed(f"Ollama generation failed: {exc}") from exc
        if not isinstance(data, dict):
            raise GenerationFailed("Ollama generation failed: unexpected response body")
        return data

    def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "model": model or self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": self._options(temperature, top_p),
        }
        if system is not None:
            payload["system"] = system
        data = self._post("/api/generate", payload)
        text = data.get("response")
        if not isinstance(text, str):
            raise GenerationFailed("Ollama generation failed: response field missing")
        return text

    def chat(
        self,
        messages: list[ChatTurn],
        *,
        model: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "model": model or self.config.model,
            "messages": messages,
            "stream": False,
            "options": self._options(temperature, top_p),
        }
        data = self._post("/api/chat", payload)
        message = data.get("message")
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise GenerationFailed("Ollama chat failed: message content missing")
        return message["content"]

    def is_available(self) -> bool:
        try:
            r = self._http.get("/api/tags", timeout=STATUS_TIMEOUT)
            return r.is_success
        except Exception:
            return False
