"""Error taxonomy for the word clue proxy."""

from __future__ import annotations

from typing import Any


class ProxyError(Exception):
    """Base class for every error the proxy reports to a caller."""

    status_code: int = 500
    message: str = "Failed to generate word data or image."

    def __init__(self, details: str | None = None, raw: str | None = None) -> None:
        super().__init__(details or self.message)
        self.details = details
        self.raw = raw

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        if self.raw is not None:
            body["raw"] = self.raw
        return body


class ValidationError(ProxyError):
    """The caller's request is missing or malformed."""

    status_code = 400
    message = "Missing word parameter"

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message}


class UpstreamFormatError(ProxyError):
    """A collaborator replied, but not in the expected shape."""

    message = "Failed to parse generated clue data."


class MissingFieldsError(UpstreamFormatError):
    message = "Generated clue data is missing required fields."

    def __init__(self, missing: list[str], raw: str | None = None) -> None:
        super().__init__(f"Missing fields: {', '.join(missing)}", raw=raw)
        self.missing = missing


class ImageFormatError(UpstreamFormatError):
    message = "Generated image could not be read."


class UpstreamCallError(ProxyError):
    """Network, transport or credential failure talking to a collaborator."""


class ConfigurationError(Exception):
    """Required configuration is absent or invalid at process start."""
