from http.server import HTTPServer
import importlib
import json
import socket
import sys
import threading

import httpx
import pytest

from conftest import StubImageProvider, StubTextProvider

from core.errors import ConfigurationError
from core.pipeline import ClueProxy


@pytest.fixture
def generate_module(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.delenv("IMAGE_PROVIDER", raising=False)
    monkeypatch.delenv("GENERATE_IMAGES", raising=False)
    sys.modules.pop("api.generate", None)
    return importlib.import_module("api.generate")


@pytest.fixture
def client(generate_module, monkeypatch, config, text_stub, image_stub):
    proxy = ClueProxy(config, text_stub, image_stub)
    monkeypatch.setattr(generate_module.handler, "proxy", proxy)

    server = HTTPServer(("127.0.0.1", 0), generate_module.handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    with httpx.Client(base_url=f"http://127.0.0.1:{server.server_port}", trust_env=False) as client:
        yield client
    server.shutdown()
    server.server_close()


def test_import_fails_without_credentials(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)
    sys.modules.pop("api.generate", None)
    with pytest.raises(ConfigurationError):
        importlib.import_module("api.generate")


def test_module_builds_proxy_from_environment(generate_module):
    proxy = generate_module.handler.proxy
    assert proxy.config.gemini_api_key == "test-key"
    assert proxy.text_provider.provider_name == "gemini"
    assert proxy.image_provider.provider_name == "gemini"


def test_get_returns_clue(client, text_stub):
    resp = client.get("/api/generate", params={"word": "cat"})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json"
    assert resp.headers["access-control-allow-origin"] == "*"
    body = resp.json()
    assert body["originalWord"] == "CAT"
    assert body["imageUrl"].startswith("data:image/")
    assert len(text_stub.calls) == 1


def test_get_without_word(client, text_stub, image_stub):
    resp = client.get("/api/generate")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing word parameter"}
    assert text_stub.calls == []
    assert image_stub.calls == []


def test_same_word_twice_is_byte_identical(client):
    first = client.get("/api/generate", params={"word": "cat"})
    second = client.get("/api/generate", params={"word": "CAT"})
    assert first.content == second.content


def test_upstream_failure_is_json_500(client, generate_module, monkeypatch, config):
    proxy = ClueProxy(config, StubTextProvider(reply="oops"), StubImageProvider())
    monkeypatch.setattr(generate_module.handler, "proxy", proxy)

    resp = client.get("/api/generate", params={"word": "cat"})

    assert resp.status_code == 500
    assert resp.json()["raw"] == "oops"


def test_options_and_unsupported_methods(client):
    preflight = client.options("/api/generate")
    assert preflight.status_code == 204
    assert "GET" in preflight.headers["access-control-allow-methods"]

    post = client.post("/api/generate", json={"word": "cat"})
    assert post.status_code == 405
    assert post.json() == {"error": "Method not allowed"}


def test_index_handler_describes_service():
    index = importlib.import_module("api.index")
    response = index.handler(None)
    assert response["statusCode"] == 200
    body = json.loads(response["body"])
    assert body["ok"] is True
    assert body["endpoints"]["generate"] == "/api/generate"


def raw_request(client, request: bytes) -> bytes:
    with socket.create_connection((client.base_url.host, client.base_url.port), timeout=5) as sock:
        sock.sendall(request)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.mark.parametrize("length", [b"abc", b"-1"])
def test_post_with_bad_content_length_still_gets_405(client, length):
    reply = raw_request(
        client,
        b"POST /api/generate HTTP/1.1\r\nHost: localhost\r\nContent-Length: " + length + b"\r\n\r\n",
    )

    status_line, _, rest = reply.partition(b"\r\n")
    assert b" 405 " in status_line
    assert json.loads(rest.split(b"\r\n\r\n", 1)[1]) == {"error": "Method not allowed"}
