"""HTTP sidecar server for contact-shield.

Runs a lightweight stdlib HTTP server on localhost so a chat backend in
another process can screen messages with one request each.

Endpoints:
    POST /evaluate   Evaluate a message
    POST /record     Replace a sender's buffered history
    POST /clear      Forget buffers (one sender, one channel, or all)
    GET  /buffers    Dump buffer state
    GET  /health     Health check

All endpoints expect/return JSON.
/evaluate body: {"text", "channel_id", "sender_id",
                 "is_sender_restricted_party"?, "bypass"?, "history"?}
"""

from __future__ import annotations
import json
import logging
import os
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .config import create_filter, load_config, load_from_yaml
from .engine import ContactFilter

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("CONTACT_SHIELD_PORT", "18792"))
DEFAULT_CONFIG = os.environ.get("CONTACT_SHIELD_CONFIG", "")

# Shared state
_filter: ContactFilter | None = None
_filter_lock = threading.Lock()


def _get_filter() -> ContactFilter:
    global _filter
    with _filter_lock:
        if _filter is None:
            cfg = load_from_yaml(DEFAULT_CONFIG) if DEFAULT_CONFIG else load_config({})
            _filter = create_filter(cfg)
        return _filter


class BadRequest(ValueError):
    """Request body is not what an endpoint expects."""


def _require_str(body: dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value:
        raise BadRequest(f"missing or invalid field: {key}")
    return value


class FilterHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the contact filter sidecar."""

    def _read_json(self) -> dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError as e:
            raise BadRequest("invalid Content-Length") from e
        if length < 0:
            raise BadRequest("invalid Content-Length")
        try:
            body = self.rfile.read(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise BadRequest("body is not valid UTF-8") from e
        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            raise BadRequest(f"invalid JSON: {e.msg}") from e
        if not isinstance(data, dict):
            raise BadRequest("body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        cf = _get_filter()
        store = getattr(cf, "store", None)
        if self.path == "/health":
            self._respond(200, {"status": "ok", "buffers": store.size if store else 0})
        elif self.path == "/buffers":
            self._respond(200, {"buffers": store.dump() if store else {}})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
            cf = _get_filter()

            if self.path == "/evaluate":
                channel_id = _require_str(body, "channel_id")
                sender_id = _require_str(body, "sender_id")
                text = body.get("text")
                if text is not None and not isinstance(text, str):
                    raise BadRequest("text must be a string")
                history = body.get("history")
                if history is not None:
                    cf.record_for_analysis(channel_id, sender_id, _str_list(history))
                result = cf.evaluate(
                    text, channel_id, sender_id,
                    is_sender_restricted_party=bool(body.get("is_sender_restricted_party")),
                    bypass=bool(body.get("bypass")),
                )
                self._respond(200, result.to_dict())

            elif self.path == "/record":
                channel_id = _require_str(body, "channel_id")
                sender_id = _require_str(body, "sender_id")
                cf.record_for_analysis(channel_id, sender_id, _str_list(body.get("history")))
                self._respond(200, {"status": "recorded"})

            elif self.path == "/clear":
                channel_id = body.get("channel_id")
                sender_id = body.get("sender_id")
                cf.clear_buffers(channel_id, sender_id)
                self._respond(200, {"status": "cleared", "channel_id": channel_id})

            else:
                self._respond(404, {"error": "not found"})

        except BadRequest as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("unhandled error on %s", self.path)
            self._respond(500, {"error": str(e)})


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise BadRequest("history must be a list of strings")
    return value


def make_server(port: int = DEFAULT_PORT, host: str = "127.0.0.1") -> ThreadingHTTPServer:
    return ThreadingHTTPServer((host, port), FilterHandler)


def serve(port: int = DEFAULT_PORT, config_path: str = DEFAULT_CONFIG) -> None:
    """Start the contact filter HTTP sidecar."""
    global _filter
    cfg = load_from_yaml(config_path) if config_path else load_config({})
    _filter = create_filter(cfg)

    server = make_server(port)
    logger.info("contact-shield sidecar listening on http://127.0.0.1:%d", port)
    logger.info("  filtering: %s", "enabled" if cfg["enabled"] else "disabled")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
        server.server_close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="contact-shield HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", default=DEFAULT_CONFIG)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(port=args.port, config_path=args.config)
