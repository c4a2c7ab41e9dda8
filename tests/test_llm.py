import asyncio

import httpx
from openai import APIConnectionError, InternalServerError

from conftest import scripted_client
from quizforge.services.llm import GenerationClient

REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def connection_error():
    return APIConnectionError(request=REQUEST)


def server_error():
    return InternalServerError("upstream exploded", response=httpx.Response(500, request=REQUEST), body=None)


def test_unconfigured_client_short_circuits():
    client = GenerationClient(api_key="")
    assert client.configured is False
    assert asyncio.run(client.generate("sys", "user")) is None


def test_transport_failures_move_to_next_model():
    client = scripted_client({"big": server_error(), "small": '{"ok": true}'})
    assert asyncio.run(client.generate("sys", "user")) == '{"ok": true}'
    assert client._client.chat.completions.calls == ["big", "small"]


def test_first_successful_model_wins():
    client = scripted_client({"big": "first", "small": "second"})
    assert asyncio.run(client.generate("sys", "user")) == "first"
    assert client._client.chat.completions.calls == ["big"]


def test_all_models_failing_gives_none():
    client = scripted_client({"big": connection_error(), "small": RuntimeError("boom")})
    assert asyncio.run(client.generate("sys", "user")) is None
    assert client._client.chat.completions.calls == ["big", "small"]


def test_empty_completion_counts_as_failure():
    client = scripted_client({"big": "   ", "small": None})
    assert asyncio.run(client.complete("big", "sys", "user")) is None
    assert asyncio.run(client.complete("small", "sys", "user")) is None


def test_explicit_model_list_overrides_default():
    client = scripted_client({"big": "a", "small": "b"})
    assert asyncio.run(client.generate("sys", "user", models=["small"])) == "b"
