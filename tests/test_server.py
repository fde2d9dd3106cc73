"""Tests for the HTTP sidecar."""

import http.client
import json
import sys, os
import threading
import urllib.error
import urllib.request
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from contact_shield import ContactFilter
from contact_shield import server


@pytest.fixture
def base_url(monkeypatch):
    monkeypatch.setattr(server, "_filter", ContactFilter())
    httpd = server.make_server(port=0)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def _request(url, body=None):
    data = None if body is None else (
        body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    )
    req = urllib.request.Request(url, data=data, method="POST" if data is not None else "GET")
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


def test_health(base_url):
    status, body = _request(f"{base_url}/health")
    assert status == 200
    assert body == {"status": "ok", "buffers": 0}


def test_evaluate_blocks_phone(base_url):
    status, body = _request(f"{base_url}/evaluate", {
        "text": "ring me on 555-123-4567",
        "channel_id": "c",
        "sender_id": "t",
        "is_sender_restricted_party": True,
    })
    assert status == 200
    assert body["is_blocked"] is True
    assert body["patterns"] == ["single_phone"]
    assert "Upgrade" in body["reason"]


def test_record_then_evaluate(base_url):
    status, _ = _request(f"{base_url}/record", {
        "channel_id": "c", "sender_id": "t", "history": ["call me at 555"],
    })
    assert status == 200
    _, body = _request(f"{base_url}/evaluate", {
        "text": "1234", "channel_id": "c", "sender_id": "t",
    })
    assert body["is_blocked"] is True
    assert "split_phone" in body["patterns"]


def test_evaluate_with_inline_history_and_bypass(base_url):
    _, body = _request(f"{base_url}/evaluate", {
        "text": "1234", "channel_id": "c", "sender_id": "t",
        "history": ["call me at 555"], "bypass": True,
    })
    assert body == {"is_blocked": False, "risk_score": 0, "patterns": [], "reason": None}


def test_buffers_and_clear(base_url):
    _request(f"{base_url}/evaluate", {"text": "hello", "channel_id": "c", "sender_id": "t"})
    _, body = _request(f"{base_url}/buffers")
    assert body["buffers"]["c:t"]["messages"] == ["hello"]
    status, _ = _request(f"{base_url}/clear", {"channel_id": "c"})
    assert status == 200
    _, body = _request(f"{base_url}/health")
    assert body["buffers"] == 0


def test_bad_requests(base_url):
    status, body = _request(f"{base_url}/evaluate", b"{not json")
    assert status == 400
    assert "invalid JSON" in body["error"]

    status, body = _request(f"{base_url}/evaluate", {"text": "hi"})
    assert status == 400
    assert "channel_id" in body["error"]

    status, _ = _request(f"{base_url}/record", {
        "channel_id": "c", "sender_id": "t", "history": "nope",
    })
    assert status == 400


def test_undecodable_body_and_bad_length(base_url):
    status, body = _request(f"{base_url}/evaluate", b"\xff\xfe{}")
    assert status == 400
    assert "UTF-8" in body["error"]

    host, port = base_url.removeprefix("http://").split(":")
    conn = http.client.HTTPConnection(host, int(port))
    conn.putrequest("POST", "/evaluate")
    conn.putheader("Content-Length", "abc")
    conn.endheaders()
    resp = conn.getresponse()
    assert resp.status == 400
    assert "Content-Length" in json.loads(resp.read())["error"]
    conn.close()


def test_lazy_filter_built_once(monkeypatch):
    monkeypatch.setattr(server, "_filter", None)
    monkeypatch.setattr(server, "DEFAULT_CONFIG", "")
    seen = []
    threads = [threading.Thread(target=lambda: seen.append(server._get_filter()))
               for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(seen) == 8
    assert all(cf is seen[0] for cf in seen)


def test_unknown_path(base_url):
    status, _ = _request(f"{base_url}/nope", {})
    assert status == 404
