"""Tests for POST /api/langflow-chat and the Langflow HTTP client."""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from config import LangflowSettings, get_langflow_settings
from errors import ConfigurationError, UpstreamError, UpstreamTimeout, UpstreamUnavailable
from routes.api import get_langflow_transport
from services.langflow_client import LangflowClient, build_run_payload
from services.token_stream import decode_text

ENDPOINT = "https://langflow.example.test/api/v1/run/lease-flow"
SETTINGS = LangflowSettings(endpoint_url=ENDPOINT, api_key="lf-test-key")


def _chat_body(*messages, **extra):
    body = {"messages": [{"role": r, "content": c} for r, c in messages]}
    body.update(extra)
    return body


@pytest.fixture
def wire(app, recording_transport):
    """Install settings + a recording upstream; returns a function taking the upstream handler."""

    def install(handler, settings=SETTINGS):
        transport = recording_transport(handler)
        app.dependency_overrides[get_langflow_settings] = lambda: settings
        app.dependency_overrides[get_langflow_transport] = lambda: transport
        return TestClient(app), transport

    return install


# ---- successful answers ----

def test_nested_artifacts_answer_streams_one_frame(wire):
    payload = {"outputs": [{"outputs": [{"artifacts": {"message": "Pets allowed with $300 deposit."}}]}]}
    client, transport = wire(lambda req: httpx.Response(200, json=payload))

    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "Can I have a dog?")))

    assert resp.status_code == 200
    assert resp.content == b'0:"Pets allowed with $300 deposit."\n'
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["x-experimental-stream-data"] == "true"
    assert transport.call_count == 1


def test_top_level_text_fallback(wire):
    client, _ = wire(lambda req: httpx.Response(200, json={"text": "Standard 12-month lease."}))
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "How long is it?")))
    assert resp.status_code == 200
    assert decode_text(resp.content) == "Standard 12-month lease."


def test_upstream_request_shape_and_last_user_message(wire):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "ok"}))

    resp = client.post(
        "/api/langflow-chat",
        json=_chat_body(
            ("user", "first question"),
            ("assistant", "an answer"),
            ("user", "follow-up question"),
            ("assistant", "trailing assistant turn"),
            sessionId="session-42",
        ),
    )

    assert resp.status_code == 200
    (sent,) = transport.requests
    assert sent.method == "POST"
    assert str(sent.url) == ENDPOINT
    assert sent.headers["authorization"] == "Bearer lf-test-key"
    assert json.loads(sent.content) == {
        "input_value": "follow-up question",
        "output_type": "chat",
        "input_type": "chat",
        "session_id": "session-42",
    }


def test_default_session_id_used_when_absent(wire):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "ok"}))
    client.post("/api/langflow-chat", json=_chat_body(("user", "hi")))
    assert json.loads(transport.requests[0].content)["session_id"] == SETTINGS.default_session_id


def test_malformed_turns_are_skipped(wire):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "ok"}))
    body = {
        "messages": [
            {"content": "no role"},
            {"role": 5, "content": "numeric role"},
            "junk string",
            {"role": "user", "content": "q"},
        ]
    }

    resp = client.post("/api/langflow-chat", json=body)

    assert resp.status_code == 200
    assert resp.content == b'0:"ok"\n'
    assert json.loads(transport.requests[0].content)["input_value"] == "q"


def test_answer_with_quotes_and_newlines_round_trips(wire):
    answer = 'Clause 4 says "no subletting".\nSee also §7 — “guests”.'
    client, _ = wire(lambda req: httpx.Response(200, json={"result": {"text": answer}}))
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "Subletting?")))
    assert resp.content.count(b"\n") == 1
    assert decode_text(resp.content) == answer


# ---- shape-extraction failure ----

def test_unknown_shape_is_500_and_no_frame(wire, caplog):
    client, _ = wire(lambda req: httpx.Response(200, json={"foo": "bar"}))
    with caplog.at_level("ERROR"):
        resp = client.post("/api/langflow-chat", json=_chat_body(("user", "anything")))
    assert resp.status_code == 500
    assert "unparseable" in resp.text
    assert not resp.text.startswith("0:")
    assert '"foo": "bar"' in caplog.text


# ---- configuration errors ----

@pytest.mark.parametrize(
    "settings",
    [
        LangflowSettings(endpoint_url="", api_key="lf-test-key"),
        LangflowSettings(endpoint_url=ENDPOINT, api_key=""),
        LangflowSettings(endpoint_url="   ", api_key="   "),
    ],
)
def test_missing_configuration_is_500_with_zero_upstream_calls(wire, settings):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "never"}), settings=settings)
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "hello")))
    assert resp.status_code == 500
    assert "configuration error" in resp.text.lower()
    assert transport.call_count == 0


# ---- input validation ----

@pytest.mark.parametrize(
    "body",
    [
        {"messages": []},
        _chat_body(("assistant", "only the assistant spoke")),
        {"messages": [{"role": "user", "content": [{"type": "text", "text": "parts"}]}]},
        {"messages": [{"role": "user", "content": None}]},
        {"messages": "not a list"},
        {},
        ["not", "an", "object"],
    ],
)
def test_bad_user_message_is_400_before_upstream(wire, body):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "never"}))
    resp = client.post("/api/langflow-chat", json=body)
    assert resp.status_code == 400
    assert transport.call_count == 0


def test_invalid_json_body_is_400(wire):
    client, transport = wire(lambda req: httpx.Response(200, json={"text": "never"}))
    resp = client.post("/api/langflow-chat", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert transport.call_count == 0


# ---- upstream failures ----

def test_upstream_5xx_status_passes_through_with_details(wire):
    client, transport = wire(lambda req: httpx.Response(503, text="flow is warming up"))
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "hi")))
    assert resp.status_code == 503
    assert "Error communicating with the knowledge base" in resp.text
    assert "flow is warming up" in resp.text
    assert transport.call_count == 1


def test_upstream_4xx_becomes_bad_gateway(wire):
    client, _ = wire(lambda req: httpx.Response(401, text="invalid api key"))
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "hi")))
    assert resp.status_code == 502
    assert "invalid api key" in resp.text


def test_connection_failure_is_500(wire):
    def refuse(req):
        raise httpx.ConnectError("connection refused", request=req)

    client, transport = wire(refuse)
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "hi")))
    assert resp.status_code == 500
    assert resp.text.startswith("Failed to connect to the knowledge base")
    assert transport.call_count == 1


def test_timeout_is_504(wire):
    def slow(req):
        raise httpx.ReadTimeout("timed out", request=req)

    client, _ = wire(slow)
    resp = client.post("/api/langflow-chat", json=_chat_body(("user", "hi")))
    assert resp.status_code == 504


# ---- client unit tests ----

def test_build_run_payload():
    assert build_run_payload("q", "s") == {
        "input_value": "q",
        "output_type": "chat",
        "input_type": "chat",
        "session_id": "s",
    }


def test_client_refuses_to_build_without_configuration():
    with pytest.raises(ConfigurationError) as exc:
        LangflowClient(LangflowSettings())
    assert exc.value.missing == ["LANGFLOW_ENDPOINT_URL", "LANGFLOW_API_KEY"]


def test_client_returns_parsed_json():
    transport = httpx.MockTransport(lambda req: httpx.Response(200, json={"outputs": []}))
    assert LangflowClient(SETTINGS, transport=transport).run("hi") == {"outputs": []}


def test_client_non_json_body_is_upstream_error():
    transport = httpx.MockTransport(lambda req: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(UpstreamError) as exc:
        LangflowClient(SETTINGS, transport=transport).run("hi")
    assert exc.value.status_code == 502


def test_client_error_classes():
    def timeout(req):
        raise httpx.ConnectTimeout("slow", request=req)

    def refused(req):
        raise httpx.ConnectError("refused", request=req)

    with pytest.raises(UpstreamTimeout):
        LangflowClient(SETTINGS, transport=httpx.MockTransport(timeout)).run("hi")
    with pytest.raises(UpstreamUnavailable):
        LangflowClient(SETTINGS, transport=httpx.MockTransport(refused)).run("hi")
