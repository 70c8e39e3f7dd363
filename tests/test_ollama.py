import json

import httpx
import pytest

from llmgrep.errors import ScoringError, SetupError
from llmgrep.llm.ollama import OllamaClient
from llmgrep.llm.retry import RetryPolicy

POLICY = RetryPolicy(max_attempts=2, timeout=5.0, initial_wait=0, max_wait=0)


def client_with(handler, **kwargs) -> OllamaClient:
    return OllamaClient(
        model="dolphin-mistral:latest",
        system="be terse",
        policy=POLICY,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestOllamaClient:
    @pytest.mark.asyncio
    async def test_generate_request_shape(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/generate"
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"response": "Score: 77\nReason: ok", "done": True})

        client = client_with(handler)
        try:
            assert await client.score("rate this") == "Score: 77\nReason: ok"
        finally:
            await client.close()

        (body,) = seen
        assert body["model"] == "dolphin-mistral:latest"
        assert body["prompt"] == "rate this"
        assert body["system"] == "be terse"
        assert body["stream"] is False
        assert body["options"]["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status != 200:
                return httpx.Response(status, text="overloaded")
            return httpx.Response(200, json={"response": "Score: 5"})

        client = client_with(handler)
        try:
            assert await client.score("p") == "Score: 5"
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"error": "model not found"})

        client = client_with(handler)
        try:
            with pytest.raises(ScoringError):
                await client.score("p")
        finally:
            await client.close()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_ping_ok(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "dolphin-mistral:latest"}]})

        client = client_with(handler)
        try:
            await client.ping()
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_ping_unreachable_is_setup_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = client_with(handler)
        try:
            with pytest.raises(SetupError):
                await client.ping()
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_ping_non_json_reply_is_setup_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>not ollama</html>")

        client = client_with(handler)
        try:
            with pytest.raises(SetupError, match="Ollama server"):
                await client.ping()
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_ping_unexpected_json_is_setup_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["not", "a", "tag", "list"])

        client = client_with(handler)
        try:
            with pytest.raises(SetupError):
                await client.ping()
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_ping_missing_model_only_warns(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"models": [{"name": "llama3:latest"}]})

        client = client_with(handler)
        try:
            await client.ping()
        finally:
            await client.close()
