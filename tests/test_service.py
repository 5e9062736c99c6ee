"""Tests for novelsmith.service with the provider SDK clients mocked out."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from novelsmith.config import ServiceConfig
from novelsmith.errors import ConfigError, ServiceError
from novelsmith.service import (
    GeminiService,
    GenerationService,
    OpenAICompatibleService,
    build_service,
    collect_stream,
)


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def chat_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


@pytest.fixture
def openai_service():
    service = OpenAICompatibleService(ServiceConfig(api_key="sk-test", model="test-model"))
    service._client = Mock()
    return service


class TestBuildService:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("NOVELSMITH_API_KEY", raising=False)
        with pytest.raises(ConfigError):
            build_service(ServiceConfig())

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("NOVELSMITH_API_KEY", "env-key")
        service = build_service(ServiceConfig())
        assert isinstance(service, OpenAICompatibleService)
        assert service.config.api_key == "env-key"

    def test_gemini_provider(self):
        service = build_service(ServiceConfig(provider="gemini", api_key="g-key"))
        assert isinstance(service, GeminiService)
        assert isinstance(service, GenerationService)


class TestOpenAICompatibleService:

    def test_complete(self, openai_service):
        create = openai_service._client.chat.completions.create
        create.return_value = chat_response("Hello")

        assert openai_service.complete("system", "user") == "Hello"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert openai_service.logs[0].action == "complete"

    def test_none_content_becomes_empty(self, openai_service):
        openai_service._client.chat.completions.create.return_value = chat_response(None)
        assert openai_service.complete("system", "user") == ""

    def test_errors_are_wrapped(self, openai_service):
        openai_service._client.chat.completions.create.side_effect = RuntimeError("401")
        with pytest.raises(ServiceError) as exc_info:
            openai_service.complete("system", "user")
        assert exc_info.value.provider == "openai"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_stream(self, openai_service):
        create = openai_service._client.chat.completions.create
        create.return_value = iter([chat_chunk("Hel"), chat_chunk(None), chat_chunk("lo")])

        assert collect_stream(openai_service, "system", "user") == "Hello"
        assert create.call_args.kwargs["stream"] is True
        assert openai_service.logs[0].action == "stream"

    def test_stream_errors_are_wrapped(self, openai_service):
        openai_service._client.chat.completions.create.side_effect = ConnectionError("down")
        with pytest.raises(ServiceError):
            list(openai_service.stream("system", "user"))


class TestGeminiService:

    def test_complete(self):
        service = GeminiService(ServiceConfig(provider="gemini", api_key="g-key", model="gemini-2.0-flash"))
        service._client = Mock()
        service._client.models.generate_content.return_value = SimpleNamespace(text="Bonjour")

        assert service.complete("system", "user") == "Bonjour"
        kwargs = service._client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert kwargs["contents"] == "user"
        assert kwargs["config"].system_instruction == "system"
