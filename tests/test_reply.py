"""Tests for reply construction."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from httpx_stub import (
    BuildsResponse,
    BytesReply,
    CustomReply,
    JsonReply,
    JsonWithReply,
    StubRequest,
    TextReply,
    encode_json,
)

REQUEST = StubRequest(url="/test")


class TestJsonReply:
    @pytest.mark.asyncio
    async def test_encodes_map(self) -> None:
        response = await JsonReply({"id": 1, "name": "Alice"}).build(REQUEST, None)
        assert json.loads(response.content) == {"id": 1, "name": "Alice"}

    @pytest.mark.asyncio
    async def test_encodes_list(self) -> None:
        response = await JsonReply([1, 2, 3]).build(REQUEST, None)
        assert response.json() == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_none_is_empty_body(self) -> None:
        response = await JsonReply(None).build(REQUEST, None)
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_default_status(self) -> None:
        response = await JsonReply({"ok": True}).build(REQUEST, None)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_custom_status(self) -> None:
        response = await JsonReply({"created": True}, status=201).build(REQUEST, None)
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_content_type(self) -> None:
        response = await JsonReply({"ok": True}).build(REQUEST, None)
        assert response.headers.get_list("content-type") == ["application/json"]

    @pytest.mark.asyncio
    async def test_content_type_overrides_user_header(self) -> None:
        reply = JsonReply({"ok": True}, headers={"Content-Type": ["text/plain"]})
        response = await reply.build(REQUEST, None)
        assert response.headers.get_list("content-type") == ["application/json"]

    @pytest.mark.asyncio
    async def test_preserves_other_headers(self) -> None:
        reply = JsonReply({"ok": True}, headers={"x-request-id": ["abc-123"]})
        response = await reply.build(REQUEST, None)
        assert response.headers["x-request-id"] == "abc-123"

    @pytest.mark.asyncio
    async def test_multi_value_header(self) -> None:
        reply = JsonReply(None, headers={"set-cookie": ["a=1", "b=2"]})
        response = await reply.build(REQUEST, None)
        assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]

    @pytest.mark.asyncio
    async def test_bare_string_header_value(self) -> None:
        reply = JsonReply(None, headers={"x-total": "3"})
        response = await reply.build(REQUEST, None)
        assert response.headers.get_list("x-total") == ["3"]

    def test_implements_protocol(self) -> None:
        assert isinstance(JsonReply(None), BuildsResponse)


class TestJsonWithReply:
    @pytest.mark.asyncio
    async def test_sync_callback(self) -> None:
        reply = JsonWithReply(lambda r: {"path": r.path})
        response = await reply.build(StubRequest(url="/users/7"), None)
        assert response.json() == {"path": "/users/7"}

    @pytest.mark.asyncio
    async def test_async_callback(self) -> None:
        async def compute(request: StubRequest) -> dict[str, object]:
            await asyncio.sleep(0)
            return {"echoed": request.data}

        reply = JsonWithReply(compute, status=202)
        response = await reply.build(StubRequest("POST", "/echo", data="hello"), None)
        assert response.status_code == 202
        assert response.json() == {"echoed": "hello"}

    @pytest.mark.asyncio
    async def test_none_result_is_empty_body(self) -> None:
        response = await JsonWithReply(lambda r: None).build(REQUEST, None)
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_content_type_overrides_user_header(self) -> None:
        reply = JsonWithReply(lambda r: {}, headers={"content-type": ["text/html"]})
        response = await reply.build(REQUEST, None)
        assert response.headers.get_list("content-type") == ["application/json"]

    @pytest.mark.asyncio
    async def test_callback_errors_propagate(self) -> None:
        def explode(request: StubRequest) -> None:
            msg = "boom"
            raise RuntimeError(msg)

        with pytest.raises(RuntimeError, match="boom"):
            await JsonWithReply(explode).build(REQUEST, None)


class TestTextReply:
    @pytest.mark.asyncio
    async def test_utf8_body(self) -> None:
        response = await TextReply("héllo").build(REQUEST, None)
        assert response.content == "héllo".encode()
        assert response.text == "héllo"

    @pytest.mark.asyncio
    async def test_empty_text(self) -> None:
        response = await TextReply("").build(REQUEST, None)
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_status_and_content_type(self) -> None:
        reply = TextReply("Not Found", status=404, headers={"content-type": ["application/json"]})
        response = await reply.build(REQUEST, None)
        assert response.status_code == 404
        assert response.headers.get_list("content-type") == ["text/plain; charset=utf-8"]


class TestBytesReply:
    PNG = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A, 0x00, 0xFF])

    @pytest.mark.asyncio
    async def test_body_verbatim(self) -> None:
        response = await BytesReply(self.PNG, content_type="image/png").build(REQUEST, None)
        assert response.content == self.PNG
        assert response.headers.get_list("content-type") == ["image/png"]

    @pytest.mark.asyncio
    async def test_content_type_overrides_user_header(self) -> None:
        reply = BytesReply(
            b"%PDF",
            content_type="application/pdf",
            headers={"Content-Type": ["text/plain"], "x-custom": ["value"]},
        )
        response = await reply.build(REQUEST, None)
        assert response.headers.get_list("content-type") == ["application/pdf"]
        assert response.headers["x-custom"] == "value"

    @pytest.mark.asyncio
    async def test_custom_status(self) -> None:
        reply = BytesReply(b"", content_type="application/octet-stream", status=206)
        response = await reply.build(REQUEST, None)
        assert response.status_code == 206

    def test_content_type_is_required(self) -> None:
        with pytest.raises(TypeError):
            BytesReply(b"data")  # type: ignore[call-arg]


class TestCustomReply:
    @pytest.mark.asyncio
    async def test_async_builder_reads_stream(self) -> None:
        async def echo(
            request: StubRequest, stream: httpx.AsyncByteStream | None
        ) -> httpx.Response:
            body = b"" if stream is None else b"".join([chunk async for chunk in stream])
            return httpx.Response(200, json={"received": body.decode()})

        stream = httpx.ByteStream(b"file contents")
        response = await CustomReply(echo).build(REQUEST, stream)
        assert response.json() == {"received": "file contents"}

    @pytest.mark.asyncio
    async def test_sync_builder(self) -> None:
        reply = CustomReply(lambda request, stream: httpx.Response(418, text="teapot"))
        response = await reply.build(REQUEST, None)
        assert response.status_code == 418
        assert response.text == "teapot"

    @pytest.mark.asyncio
    async def test_builder_receives_request(self) -> None:
        seen: list[StubRequest] = []

        def record(request: StubRequest, stream: object) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        await CustomReply(record).build(REQUEST, None)
        assert seen == [REQUEST]


class TestEncodeJson:
    def test_none(self) -> None:
        assert encode_json(None) == b""

    def test_compact(self) -> None:
        assert encode_json({"a": [1, 2]}) == b'{"a":[1,2]}'

    def test_round_trip(self) -> None:
        value = {"name": "Zoë", "tags": ["x"], "n": 1.5, "ok": False, "none": None}
        assert json.loads(encode_json(value)) == value

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError, match="JSON compliant"):
            encode_json({"x": float("nan")})

    @pytest.mark.asyncio
    async def test_nan_fails_at_build(self) -> None:
        with pytest.raises(ValueError):
            await JsonReply({"x": float("inf")}).build(REQUEST, None)
