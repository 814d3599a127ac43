"""Adapters around the text-completion service used for structural extraction."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import UpstreamError

_AUTO = object()

PROVIDERS = ("anthropic", "openai", "cli")


@dataclass
class LLMRequest:
    """Represents a single completion request."""

    prompt: str
    system: Optional[str]
    provider: str
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    executable: Optional[str]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]


class LLMRunner:
    """Executes prompts against the configured completion provider."""

    DEFAULT_MODEL = "claude-sonnet-4-5"
    DEFAULT_MAX_TOKENS = 4096
    ANTHROPIC_VERSION = "2023-06-01"
    DEFAULT_BASE_URLS = {
        "anthropic": "https://api.anthropic.com",
        "openai": "https://api.openai.com/v1",
    }
    ENV_PROVIDER_KEYS = ("REPOGRAPH_LLM_PROVIDER",)
    ENV_MODEL_KEYS = ("REPOGRAPH_LLM_MODEL", "CLAUDE_MODEL")
    ENV_MAX_TOKENS_KEYS = ("REPOGRAPH_LLM_MAX_TOKENS", "CLAUDE_MAX_TOKENS")
    ENV_BASE_URL_KEYS = ("REPOGRAPH_LLM_BASE_URL",)
    ENV_API_KEY_KEYS = {
        "anthropic": ("REPOGRAPH_LLM_API_KEY", "ANTHROPIC_API_KEY"),
        "openai": ("REPOGRAPH_LLM_API_KEY", "OPENAI_API_KEY"),
        "cli": ("REPOGRAPH_LLM_API_KEY",),
    }

    def __init__(
        self,
        model: str | None = None,
        *,
        provider: str | None = None,
        base_url: str | None | object = _AUTO,
        executable: str = "ollama",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO,
        request_timeout: Optional[float] = 120.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.provider = self._resolve_provider(provider)
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.executable = executable
        self.temperature = temperature
        self.max_tokens = self._resolve_max_tokens(max_tokens)
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        if runner is not None:
            self._runner = runner
        elif self.provider == "anthropic":
            self._runner = self._anthropic_runner
        elif self.provider == "openai":
            self._runner = self._openai_runner
        else:
            self._runner = self._cli_runner

    @classmethod
    def from_config(cls, config, **overrides) -> "LLMRunner":  # type: ignore[no-untyped-def]
        """Build a runner from an ``LLMConfig``; ``None`` fields fall back to env/defaults."""
        kwargs: dict[str, object] = {}
        if config is not None:
            if config.provider:
                kwargs["provider"] = config.provider
            if config.model:
                kwargs["model"] = config.model
            if config.base_url:
                kwargs["base_url"] = config.base_url
            if config.api_key:
                kwargs["api_key"] = config.api_key
            if config.executable:
                kwargs["executable"] = config.executable
            if config.temperature is not None:
                kwargs["temperature"] = config.temperature
            if config.max_tokens is not None:
                kwargs["max_tokens"] = config.max_tokens
            if config.request_timeout is not None:
                kwargs["request_timeout"] = config.request_timeout
        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            provider=self.provider,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            executable=self.executable,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _cli_runner(request: LLMRequest) -> str:
        args = [request.executable or "ollama", "run", request.model]
        if request.system:
            args.extend(["--system", request.system])
        args.append(request.prompt)
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
                timeout=request.request_timeout,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise UpstreamError(
                f"Unable to locate '{request.executable}'. Install it or configure an HTTP provider."
            ) from exc
        except subprocess.CalledProcessError as exc:  # pragma: no cover - depends on environment
            raise UpstreamError(
                f"LLM CLI failed with exit code {exc.returncode}: {exc.stderr.strip()}"
            ) from exc
        except subprocess.TimeoutExpired as exc:  # pragma: no cover - depends on environment
            raise UpstreamError(f"LLM CLI timed out after {request.request_timeout}s") from exc
        return completed.stdout.strip()

    @staticmethod
    def _anthropic_runner(request: LLMRequest) -> str:
        if not request.api_key:
            raise UpstreamError("ANTHROPIC_API_KEY not found in environment")
        payload: dict[str, object] = {
            "model": request.model,
            "max_tokens": request.max_tokens or LLMRunner.DEFAULT_MAX_TOKENS,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            payload["system"] = request.system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        headers = {
            "Content-Type": "application/json",
            "x-api-key": request.api_key,
            "anthropic-version": LLMRunner.ANTHROPIC_VERSION,
        }
        response_payload = LLMRunner._post_json(
            f"{request.base_url}/v1/messages", payload, headers, request.request_timeout
        )
        return LLMRunner._extract_anthropic_text(response_payload)

    @staticmethod
    def _openai_runner(request: LLMRequest) -> str:
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"
        response_payload = LLMRunner._post_json(
            f"{request.base_url}/chat/completions", payload, headers, request.request_timeout
        )
        content = LLMRunner._extract_openai_text(response_payload)
        if not content:
            raise UpstreamError("Completion service returned an empty response")
        return content.strip()

    @staticmethod
    def _post_json(
        endpoint: str,
        payload: dict[str, object],
        headers: dict[str, str],
        timeout: Optional[float],
    ) -> dict[str, object]:
        data = json.dumps(payload).encode("utf-8")
        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        try:
            with urlopen(http_request, timeout=timeout or 120.0) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise UpstreamError(
                f"Completion service failed with status {exc.code}: {message}"
            ) from exc
        except URLError as exc:
            raise UpstreamError(f"Completion service unreachable: {exc.reason}") from exc
        except TimeoutError as exc:
            raise UpstreamError(f"Completion service timed out after {timeout}s") from exc

        try:
            decoded = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise UpstreamError("Completion service returned invalid JSON") from exc
        if not isinstance(decoded, dict):
            raise UpstreamError("Completion service returned an unexpected payload")
        return decoded

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_anthropic_text(payload: dict[str, object]) -> str:
        content = payload.get("content")
        if not isinstance(content, list) or not content:
            raise UpstreamError("Unexpected response type: no content blocks")
        first = content[0]
        if not isinstance(first, dict) or first.get("type") != "text":
            raise UpstreamError("Unexpected response type")
        text = first.get("text")
        if not isinstance(text, str):
            raise UpstreamError("Unexpected response type")
        return text

    @staticmethod
    def _extract_openai_text(payload: dict[str, object]) -> str:
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

    def _resolve_provider(self, provider: str | None) -> str:
        value = provider or self._first_env_value(self.ENV_PROVIDER_KEYS) or "anthropic"
        value = value.lower()
        if value not in PROVIDERS:
            raise ValueError(
                f"Unsupported LLM provider: '{value}'. Allowed providers: {', '.join(PROVIDERS)}"
            )
        return value

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_max_tokens(self, max_tokens: Optional[int]) -> Optional[int]:
        if max_tokens is not None:
            return max_tokens
        env_value = self._first_env_value(self.ENV_MAX_TOKENS_KEYS)
        if env_value and env_value.isdigit():
            return int(env_value)
        return self.DEFAULT_MAX_TOKENS if self.provider == "anthropic" else None

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO:
            return str(base_url).rstrip("/")
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        if env_value:
            return env_value.rstrip("/")
        return self.DEFAULT_BASE_URLS.get(self.provider)

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO:
            return self._first_env_value(self.ENV_API_KEY_KEYS[self.provider])
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None
