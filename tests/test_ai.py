import asyncio

import pytest

from classvoice.core.config import settings
from classvoice.core.exceptions import UpstreamError
from classvoice.utils.ai import AIService


def test_missing_key_disables_summaries_without_breaking_startup(monkeypatch):
    monkeypatch.setattr(settings, "ai_api_key", "")

    service = AIService()

    assert service.is_configured() is False
    with pytest.raises(UpstreamError):
        asyncio.run(service.summarize("[Post 1] likes: 0\nhello"))
    assert service._client is None

    asyncio.run(service.close())


def test_client_is_built_on_first_use(monkeypatch):
    monkeypatch.setattr(settings, "ai_api_key", "sk-test")
    monkeypatch.setattr(settings, "ai_api_endpoint", "https://llm.local/v1/chat/completions")

    service = AIService()
    assert service._client is None

    client = service.client

    assert client is service.client
    assert str(client.base_url).rstrip("/") == "https://llm.local/v1"
    assert client.max_retries == 0

    asyncio.run(service.close())
    assert service._client is None
