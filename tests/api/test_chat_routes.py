"""
Tests for the chat endpoints against a mocked Anthropic upstream
"""
import json

import httpx
import pytest

from tests.helpers import MODEL, anthropic_stream, sse_line


CHAT_BODY = {"messages": [{"role": "user", "content": "Hello"}]}


def ndjson(response):
    return [json.loads(line) for line in response.text.splitlines() if line]


def streaming_upstream(body: bytes):
    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body)
    return handler


class TestChat:

    def test_completion(self, client, upstream_handler, upstream_requests):
        upstream_handler["handler"] = lambda request: httpx.Response(200, json={
            "id": "msg_1",
            "model": MODEL,
            "content": [{"type": "text", "text": "Hi there"}],
            "usage": {"input_tokens": 3, "output_tokens": 2},
        })

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "msg_1"
        assert body["message"]["content"] == "Hi there"
        assert body["usage"]["total_tokens"] == 5

        sent = upstream_requests[0]
        assert sent.headers["x-api-key"] == "test-key"
        assert json.loads(sent.content)["max_tokens"] == 4096
        assert "stream" not in json.loads(sent.content)

    @pytest.mark.parametrize("environ", [{}])
    def test_missing_credential(self, client, upstream_requests):
        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "credential_not_configured"
        assert "ANTHROPIC_API_KEY" in response.json()["error"]["message"]
        assert upstream_requests == []

    @pytest.mark.parametrize("environ", [{}])
    def test_credential_set_at_runtime(self, client, upstream_handler, upstream_requests):
        upstream_handler["handler"] = lambda request: httpx.Response(200, json={"content": []})
        client.post("/api/settings/api-key", json={"provider": "ANTHROPIC_API_KEY", "key": "runtime-key"})

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 200
        assert upstream_requests[0].headers["x-api-key"] == "runtime-key"

    @pytest.mark.parametrize("environ", [{}])
    def test_empty_credential_reaches_upstream(self, client, upstream_handler, upstream_requests):
        upstream_handler["handler"] = lambda request: httpx.Response(
            401, json={"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}}
        )
        client.post("/api/settings/api-key", json={"provider": "ANTHROPIC_API_KEY", "key": ""})

        providers = client.get("/api/health").json()["providers"]
        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert providers[0] == {"name": "anthropic", "available": True}
        assert upstream_requests[0].headers["x-api-key"] == ""
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "upstream_http_error_401"

    def test_upstream_rejection_status_preserved(self, client, upstream_handler):
        payload = {"type": "error", "error": {"type": "rate_limit_error", "message": "slow down"}}
        upstream_handler["handler"] = lambda request: httpx.Response(429, json=payload)

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "upstream_http_error_429"
        assert error["upstream"] == payload

    def test_upstream_unreachable(self, client, upstream_handler):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        upstream_handler["handler"] = refuse

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "upstream_unreachable"

    def test_upstream_timeout(self, client, upstream_handler):
        def stall(request):
            raise httpx.ReadTimeout("timed out", request=request)

        upstream_handler["handler"] = stall

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "upstream_timeout"

    def test_invalid_upstream_body(self, client, upstream_handler):
        upstream_handler["handler"] = lambda request: httpx.Response(200, text="not json")

        response = client.post("/api/claude/chat", json=CHAT_BODY)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "upstream_invalid_response"

    def test_malformed_request(self, client, upstream_requests):
        response = client.post("/api/claude/chat", json={"model": MODEL})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "invalid_request_format"
        assert upstream_requests == []

    def test_stream_flag_dispatches_to_streaming(self, client, upstream_handler):
        upstream_handler["handler"] = streaming_upstream(anthropic_stream("Hi"))

        response = client.post("/api/claude/chat", json={**CHAT_BODY, "stream": True})

        assert response.headers["content-type"].startswith("application/x-ndjson")
        assert ndjson(response)[-1]["done"] is True


class TestChatStream:

    def test_stream(self, client, upstream_handler, upstream_requests):
        upstream_handler["handler"] = streaming_upstream(anthropic_stream("Hello", " world", output_tokens=9))

        response = client.post("/api/claude/chat/stream", json={**CHAT_BODY, "model": "claude-opus-4-6"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert ndjson(response) == [
            {"token": "Hello", "done": False},
            {"token": " world", "done": False},
            {"token": "", "done": True, "model": "claude-opus-4-6", "total_tokens": 9},
        ]
        sent = json.loads(upstream_requests[0].content)
        assert sent["stream"] is True
        assert sent["model"] == "claude-opus-4-6"

    def test_default_model_in_terminal_record(self, client, upstream_handler):
        upstream_handler["handler"] = streaming_upstream(anthropic_stream("x"))

        records = ndjson(client.post("/api/claude/chat/stream", json=CHAT_BODY))

        assert records[-1]["model"] == MODEL

    def test_upstream_rejection_before_stream(self, client, upstream_handler):
        upstream_handler["handler"] = lambda request: httpx.Response(401, json={"error": {"type": "authentication_error"}})

        response = client.post("/api/claude/chat/stream", json=CHAT_BODY)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "upstream_http_error_401"

    def test_upstream_unreachable(self, client, upstream_handler):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        upstream_handler["handler"] = refuse

        response = client.post("/api/claude/chat/stream", json=CHAT_BODY)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "upstream_unreachable"

    @pytest.mark.parametrize("environ", [{}])
    def test_missing_credential(self, client, upstream_requests):
        response = client.post("/api/claude/chat/stream", json=CHAT_BODY)

        assert response.status_code == 400
        assert upstream_requests == []

    def test_failure_mid_stream(self, client, upstream_handler):
        async def broken_body():
            yield sse_line({"type": "content_block_delta", "delta": {"text": "partial"}})
            raise httpx.ReadError("connection reset by peer")

        upstream_handler["handler"] = lambda request: httpx.Response(200, content=broken_body())

        response = client.post("/api/claude/chat/stream", json=CHAT_BODY)

        assert response.status_code == 200
        records = ndjson(response)
        assert records[0] == {"token": "partial", "done": False}
        assert records[-1]["done"] is True
        assert records[-1]["token"].startswith("\n[Stream error: ReadError")
        assert len([record for record in records if record["done"]]) == 1

    def test_session_history_is_unchanged_by_chat(self, client, upstream_handler):
        upstream_handler["handler"] = streaming_upstream(anthropic_stream("x"))
        session_id = client.post("/api/sessions", json={"title": "s"}).json()["id"]

        client.post("/api/claude/chat/stream", json=CHAT_BODY)

        assert client.get(f"/api/sessions/{session_id}").json()["messages"] == []
