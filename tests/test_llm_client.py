"""
Tests for the Ollama oracle client.

The HTTP side is replaced by httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import json

import httpx
import pytest

from meta_search.exceptions import OracleResponseError, OracleTransportError
from meta_search.llm import OllamaOracle, Oracle, ModelConfig, extract_json


def run(coro):
    return asyncio.run(coro)


def make_oracle(handler, **kwargs) -> OllamaOracle:
    kwargs.setdefault("retry_delay", 0.0)
    return OllamaOracle(transport=httpx.MockTransport(handler), **kwargs)


def generate_handler(text, requests=None, **extra):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(json.loads(request.content))
        return httpx.Response(200, json={"response": text, "eval_count": 7, **extra})
    return handler


# ══════════════════════════════════════════════════════════════════════════════
# JSON EXTRACTION
# ══════════════════════════════════════════════════════════════════════════════

class TestExtractJson:

    def test_direct(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"name": "X"}\n```\nEnjoy.'
        assert extract_json(text) == {"name": "X"}

    def test_embedded_object(self):
        assert extract_json('Sure! {"name": "Y", "n": [1, 2]} hope it helps') == {"name": "Y", "n": [1, 2]}

    def test_garbage(self):
        with pytest.raises(OracleResponseError):
            extract_json("no json at all")


# ══════════════════════════════════════════════════════════════════════════════
# GENERATION
# ══════════════════════════════════════════════════════════════════════════════

class TestOllamaOracle:

    def test_implements_protocol(self):
        assert isinstance(OllamaOracle(), Oracle)

    def test_complete_sends_model_and_system(self):
        requests = []
        oracle = make_oracle(generate_handler("hello", requests), model=ModelConfig(name="tiny", temperature=0.1))

        text = run(oracle.complete("Say hi", system_prompt="Be brief"))

        assert text == "hello"
        assert requests[0]["model"] == "tiny"
        assert requests[0]["system"] == "Be brief"
        assert requests[0]["options"]["temperature"] == 0.1
        assert oracle.get_stats()["tokens_generated"] == 7

    def test_complete_structured(self):
        requests = []
        answer = json.dumps({"name": "N", "rationale": "R", "body": "B"})
        oracle = make_oracle(generate_handler(answer, requests))

        data = run(oracle.complete_structured("Design an agent"))

        assert data == {"name": "N", "rationale": "R", "body": "B"}
        assert requests[0]["format"] == "json"
        assert requests[0]["prompt"].endswith("Respond with valid JSON only, no explanation.")

    def test_structured_rejects_non_object(self):
        oracle = make_oracle(generate_handler("[1, 2, 3]"))
        with pytest.raises(OracleResponseError):
            run(oracle.complete_structured("Design an agent"))

    def test_truncated_answer_rejected(self):
        oracle = make_oracle(generate_handler('{"name": "N"', done_reason="length"))
        with pytest.raises(OracleResponseError):
            run(oracle.complete("long"))

    def test_retries_then_transport_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, json={"error": "busy"})

        oracle = make_oracle(handler, max_attempts=3)

        with pytest.raises(OracleTransportError):
            run(oracle.complete("hi"))
        assert len(calls) == 3
        assert oracle.get_stats()["errors"] == 3

    def test_recovers_after_transient_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"response": "ok"})

        oracle = make_oracle(handler)
        assert run(oracle.complete("hi")) == "ok"
        assert len(calls) == 2

    def test_missing_response_field(self):
        oracle = make_oracle(lambda request: httpx.Response(200, json={"unexpected": True}))
        with pytest.raises(OracleResponseError):
            run(oracle.complete("hi"))

    def test_cache(self, temp_dir):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"response": "cached text"})

        oracle = make_oracle(handler, enable_cache=True, cache_dir=temp_dir / "cache")

        assert run(oracle.complete("same prompt")) == "cached text"
        assert run(oracle.complete("same prompt")) == "cached text"
        assert len(calls) == 1
        assert oracle.get_stats()["cache_hits"] == 1

        oracle.clear_cache()
        assert list((temp_dir / "cache").glob("*.txt")) == []

    def test_list_and_ensure_models(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "qwen2.5-coder:14b"}, {"name": "llama3.2:3b"}]})

        oracle = make_oracle(handler)

        assert run(oracle.list_models()) == ["qwen2.5-coder:14b", "llama3.2:3b"]
        assert run(oracle.ensure_model()) is True
        assert run(oracle.ensure_model("mistral")) is False

    def test_context_manager_closes_client(self):
        async def scenario():
            async with make_oracle(generate_handler("x")) as oracle:
                await oracle.complete("hi")
                assert oracle._client is not None
            return oracle

        oracle = run(scenario())
        assert oracle._client is None
