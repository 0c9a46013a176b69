"""Request context used to find the visitor's IP address."""

from collections.abc import Mapping
from dataclasses import dataclass

from fastapi import Request


def _first_entry(value: str | None) -> str | None:
    """Return the first entry of a comma separated header value (e.g. X-Forwarded-For)."""
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def _strip_port(node: str) -> str:
    """Drop a port suffix: "192.0.2.60:4711" and "[2001:db8::1]:4711" become bare addresses."""
    if node.startswith("["):
        return node[1:].split("]")[0]
    if node.count(":") == 1:
        return node.split(":")[0]
    return node


def _client_address(value: str | None) -> str | None:
    """First entry of a header value, without any port suffix."""
    first = _first_entry(value)
    if not first:
        return None
    return _strip_port(first) or None


def _forwarded_for(value: str | None) -> str | None:
    """Extract the first `for=` node from an RFC 7239 Forwarded header.

    Values without any `for=` parameter are returned as-is (first entry only).
    """
    first = _first_entry(value)
    if not first:
        return None
    if "=" not in first:
        return _strip_port(first) or None

    for pair in first.split(";"):
        key, _, node = pair.partition("=")
        if key.strip().lower() != "for":
            continue
        return _strip_port(node.strip().strip('"')) or None
    return None


@dataclass(frozen=True)
class RequestContext:
    """Client IP revealing values of a request, in lookup priority order."""

    client_ip: str | None = None
    x_forwarded_for: str | None = None
    x_forwarded: str | None = None
    forwarded_for: str | None = None
    forwarded: str | None = None
    remote_addr_env: str | None = None
    remote_addr_server: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        """Build the context from an incoming Starlette/FastAPI request."""
        headers = request.headers
        return cls(
            client_ip=headers.get("client-ip"),
            x_forwarded_for=headers.get("x-forwarded-for"),
            x_forwarded=headers.get("x-forwarded"),
            forwarded_for=headers.get("forwarded-for"),
            forwarded=headers.get("forwarded"),
            remote_addr_server=request.client.host if request.client else None,
        )

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "RequestContext":
        """Build the context from a WSGI/CGI style environment mapping."""
        return cls(
            client_ip=environ.get("HTTP_CLIENT_IP"),
            x_forwarded_for=environ.get("HTTP_X_FORWARDED_FOR"),
            x_forwarded=environ.get("HTTP_X_FORWARDED"),
            forwarded_for=environ.get("HTTP_FORWARDED_FOR"),
            forwarded=environ.get("HTTP_FORWARDED"),
            remote_addr_env=environ.get("REMOTE_ADDR"),
        )

    def visitor_ip(self, fallback: str) -> str:
        """Return the first non-empty candidate, or `fallback` when the request reveals nothing."""
        candidates = (
            _client_address(self.client_ip),
            _client_address(self.x_forwarded_for),
            _client_address(self.x_forwarded),
            _client_address(self.forwarded_for),
            _forwarded_for(self.forwarded),
            _client_address(self.remote_addr_env),
            _client_address(self.remote_addr_server),
        )
        for candidate in candidates:
            if candidate:
                return candidate
        return fallback
