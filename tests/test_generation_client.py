import json

import httpx
import pytest
import respx
from httpx import Response

from repair_planner.errors import GenerationError
from repair_planner.llm import GenerationClient


@pytest.mark.asyncio
async def test_list_models_hits_models_endpoint():
    client = GenerationClient("http://gen.test/v1/", "test-model")
    try:
        with respx.mock(assert_all_called=True) as respx_mock:
            respx_mock.get("http://gen.test/v1/models").mock(
                return_value=Response(200, json={"data": [{"id": "test-model"}]})
            )
            data = await client.list_models()
            assert data["data"][0]["id"] == "test-model"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_complete_payload_shape_and_caps_tokens():
    client = GenerationClient("http://gen.test/v1", "test-model", api_key="k-123", temperature=0.1, max_output_tokens=300)
    captured = {}
    try:
        with respx.mock(assert_all_called=True) as respx_mock:

            def handler(request):
                captured["json"] = json.loads(request.content.decode("utf-8"))
                captured["auth"] = request.headers.get("Authorization")
                return Response(200, json={"choices": [{"message": {"content": "{\"title\": \"x\"}"}}]})

            respx_mock.post("http://gen.test/v1/chat/completions").mock(side_effect=handler)
            text = await client.complete("plan it", system="be precise", max_tokens=2048)
            assert text == '{"title": "x"}'
            payload = captured["json"]
            assert payload["model"] == "test-model"
            assert payload["max_tokens"] == 300
            assert payload["temperature"] == 0.1
            assert payload["stream"] is False
            assert [m["role"] for m in payload["messages"]] == ["system", "user"]
            assert captured["auth"] == "Bearer k-123"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_reasoning_field_used_when_content_empty():
    client = GenerationClient("http://gen.test/v1", "test-model")
    try:
        with respx.mock() as respx_mock:
            respx_mock.post("http://gen.test/v1/chat/completions").mock(
                return_value=Response(
                    200, json={"choices": [{"message": {"content": "", "reasoning_content": "{\"a\": 1}"}}]}
                )
            )
            assert await client.complete("plan it") == '{"a": 1}'
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_empty_reply_raises_generation_error():
    client = GenerationClient("http://gen.test/v1", "test-model")
    try:
        with respx.mock() as respx_mock:
            respx_mock.post("http://gen.test/v1/chat/completions").mock(
                return_value=Response(200, json={"choices": [{"message": {"content": "   "}}]})
            )
            with pytest.raises(GenerationError):
                await client.complete("plan it")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_http_errors_propagate_unchanged():
    client = GenerationClient("http://gen.test/v1", "test-model")
    try:
        with respx.mock() as respx_mock:
            respx_mock.post("http://gen.test/v1/chat/completions").mock(
                return_value=Response(503, json={"error": "overloaded"})
            )
            with pytest.raises(httpx.HTTPStatusError) as excinfo:
                await client.complete("plan it")
            assert excinfo.value.response.status_code == 503
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_no_authorization_header_without_key():
    client = GenerationClient("http://gen.test/v1", "test-model")
    try:
        assert "Authorization" not in client.client.headers
    finally:
        await client.close()
