"""Vercel serverless entrypoint: ``GET /api/generate?word=<token>``.

Configuration is read once when the module is imported. A missing API key
raises ``ConfigurationError`` here, so the function never starts serving.
"""

from __future__ import annotations

import logging
import sys
from http.server import BaseHTTPRequestHandler
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from dotenv import load_dotenv

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config import load_config
from core.models import ProxyResponse
from core.pipeline import ClueProxy

load_dotenv()
CONFIG = load_config()
logging.basicConfig(level=CONFIG.log_level)
logger = logging.getLogger(__name__)


class handler(BaseHTTPRequestHandler):
    """Vercel Python serverless function handler."""

    proxy: ClueProxy = ClueProxy.from_config(CONFIG)

    def do_OPTIONS(self):
        """Handle CORS preflight"""
        self.send_proxy_response(ProxyResponse(status_code=204))

    def do_GET(self):
        query = parse_qs(urlsplit(self.path).query, keep_blank_values=True)
        response = self.proxy.handle(query)
        logger.info("GET %s -> %d", urlsplit(self.path).path, response.status_code)
        self.send_proxy_response(response)

    def do_POST(self):
        self.drain_body()
        self.send_proxy_response(ProxyResponse(status_code=405, body={"error": "Method not allowed"}))

    do_PUT = do_POST
    do_DELETE = do_POST
    do_PATCH = do_POST

    def drain_body(self) -> None:
        """Read and discard the request body so the connection closes cleanly."""
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            logger.warning("Ignoring malformed Content-Length %r", self.headers.get("Content-Length"))
            length = 0
        if length > 0:
            self.rfile.read(length)

    def send_proxy_response(self, response: ProxyResponse) -> None:
        payload = response.encoded_body()
        self.send_response(response.status_code)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload:
            self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

