"""Clients for the external text-generation service.

The core only needs ``complete(system_prompt, user_prompt) -> str`` and a
streaming variant. No retries, backoff or rate limiting happen here:
provider errors are wrapped in :class:`ServiceError` and propagate to the
stage that issued the call.
"""

import time
from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable

from loguru import logger

from .config import ServiceConfig
from .errors import ConfigError, ServiceError


@runtime_checkable
class GenerationService(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...

    def stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]: ...


@dataclass
class CallLog:
    provider: str = ""
    action: str = ""
    prompt_preview: str = ""
    response_preview: str = ""
    elapsed_seconds: float = 0.0


class BaseService:
    """Shared bookkeeping for concrete providers."""

    provider = "base"

    def __init__(self, config: ServiceConfig):
        if not config.api_key:
            raise ConfigError(
                f"No API key configured for provider '{config.provider}'"
            )
        self.config = config
        self.logs: list[CallLog] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        start = time.time()
        try:
            result = self._complete(system_prompt, user_prompt)
        except ServiceError:
            raise
        except Exception as e:
            logger.error(f"{self.provider} call failed: {e}")
            raise ServiceError(str(e), provider=self.provider, cause=e) from e
        result = result or ""
        self._log("complete", user_prompt or system_prompt, result, time.time() - start)
        return result

    def stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]:
        start = time.time()
        collected: list[str] = []
        try:
            for chunk in self._stream(system_prompt, user_prompt):
                if chunk:
                    collected.append(chunk)
                    yield chunk
        except ServiceError:
            raise
        except Exception as e:
            logger.error(f"{self.provider} stream failed: {e}")
            raise ServiceError(str(e), provider=self.provider, cause=e) from e
        self._log(
            "stream", user_prompt or system_prompt, "".join(collected), time.time() - start
        )

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError

    def _stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]:
        raise NotImplementedError

    def _log(self, action: str, prompt: str, response: str, elapsed: float) -> None:
        entry = CallLog(
            provider=self.provider,
            action=action,
            prompt_preview=prompt[:200],
            response_preview=response[:200] if response else "",
            elapsed_seconds=round(elapsed, 2),
        )
        self.logs.append(entry)
        logger.debug(
            f"{self.provider}.{action} {entry.elapsed_seconds}s "
            f"({len(prompt)} chars in, {len(response)} chars out)"
        )


class OpenAICompatibleService(BaseService):
    """Any OpenAI-compatible chat endpoint (OpenAI, OpenRouter, DashScope...)."""

    provider = "openai"

    def __init__(self, config: ServiceConfig):
        super().__init__(config)
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self.config.api_key, base_url=self.config.base_url)
        return self._client

    def _messages(self, system_prompt: str, user_prompt: str) -> list[dict]:
        messages = [{"role": "system", "content": system_prompt}]
        if user_prompt:
            messages.append({"role": "user", "content": user_prompt})
        return messages

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=self._messages(system_prompt, user_prompt),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]:
        stream = self.client.chat.completions.create(
            model=self.config.model,
            messages=self._messages(system_prompt, user_prompt),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            stream=True,
        )
        for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content


class GeminiService(BaseService):
    """Google Gemini via the google-genai SDK."""

    provider = "gemini"

    def __init__(self, config: ServiceConfig):
        super().__init__(config)
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    def _generation_config(self, system_prompt: str):
        from google.genai import types

        return types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_tokens,
        )

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.models.generate_content(
            model=self.config.model,
            contents=user_prompt or " ",
            config=self._generation_config(system_prompt),
        )
        return response.text or ""

    def _stream(self, system_prompt: str, user_prompt: str) -> Iterator[str]:
        for chunk in self.client.models.generate_content_stream(
            model=self.config.model,
            contents=user_prompt or " ",
            config=self._generation_config(system_prompt),
        ):
            if chunk.text:
                yield chunk.text


def build_service(config: ServiceConfig) -> BaseService:
    if config.provider == "gemini":
        return GeminiService(config)
    return OpenAICompatibleService(config)


def collect_stream(service: GenerationService, system_prompt: str, user_prompt: str) -> str:
    """Drain the streaming variant into one string."""
    return "".join(service.stream(system_prompt, user_prompt))
