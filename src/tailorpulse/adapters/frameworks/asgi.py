"""ASGI middleware that records a RequestSample for every HTTP request.

Framework-agnostic: it wraps any ASGI application (FastAPI, Starlette,
Django's ASGI handler) without depending on any of them.
"""

import fnmatch
import logging
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any

from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.models import RequestSample
from tailorpulse.core.ports import RequestSampleStoragePort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _header(scope: Scope, header_name: str) -> str | None:
    """Return the first value of a header (case-insensitive), if present."""
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return value.decode("utf-8", errors="replace")
    return None


def _extract_request_id(scope: Scope, header_name: str = "X-Request-ID") -> str:
    """Extract or generate a request ID from ASGI scope headers.

    Args:
        scope: ASGI scope dictionary containing request metadata.
        header_name: Name of the header to search for (default: "X-Request-ID").

    Returns:
        Request ID string (either from header or newly generated UUID).
    """
    return _header(scope, header_name) or str(uuid.uuid4())


def _client_ip(scope: Scope) -> str | None:
    """Client address, preferring the first X-Forwarded-For hop."""
    forwarded = _header(scope, "X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    client = scope.get("client")
    if client:
        return str(client[0])
    return None


class RequestSamplingMiddleware:
    """ASGI middleware that writes one RequestSample per HTTP request.

    Exceptions from the wrapped app are recorded with status 500, reported
    through the optional ErrorReporter, and re-raised. Storage failures are
    logged and never affect the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        storage: RequestSampleStoragePort,
        reporter: ErrorReporter | None = None,
        exclude_paths: list[str] | None = None,
        request_id_header: str = "X-Request-ID",
        user_id_header: str = "X-User-ID",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the middleware with a wrapped app and storage adapter.

        Args:
            app: The ASGI application to wrap.
            storage: Storage adapter for request samples.
            reporter: Error reporter for unhandled exceptions (optional).
            exclude_paths: List of paths to exclude from sampling.
                          Supports exact matches and wildcard patterns
                          (e.g., "/monitoring/*").
            request_id_header: Name of the header to extract request ID from.
            user_id_header: Name of the header carrying the user id, if any.
            clock: Returns the current Unix time in seconds.
        """
        self.app = app
        self.storage = storage
        self.reporter = reporter
        self.exclude_paths = exclude_paths or []
        self.request_id_header = request_id_header
        self.user_id_header = user_id_header
        self._clock = clock

    def _path_excluded(self, path: str) -> bool:
        """Check if path matches any pattern in exclude_paths."""
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http" or self._path_excluded(scope["path"]):
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        captured: dict[str, Any] = {"status": None, "exception": None}

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, wrapped_send)
        except Exception as e:
            captured["exception"] = e
            captured["status"] = 500

        duration_ms = (time.perf_counter() - start_time) * 1000
        await self._record(scope, captured, duration_ms)
        if captured["exception"] is not None:
            raise captured["exception"]

    async def _record(
        self, scope: Scope, captured: dict[str, Any], duration_ms: float
    ) -> None:
        """Write the request sample, and report the exception if one escaped."""
        sample = RequestSample(
            path=scope["path"],
            method=scope["method"],
            status_code=captured["status"] or 500,
            response_time_ms=duration_ms,
            timestamp=self._clock(),
            user_id=_header(scope, self.user_id_header),
            ip_address=_client_ip(scope),
        )
        try:
            await self.storage.write(sample)
        except Exception:
            logger.exception(
                "Failed to record sample for %s %s", sample.method, sample.path
            )

        exc = captured["exception"]
        if exc is not None and self.reporter is not None:
            await self.reporter.report_exception(
                exc,
                component="api",
                user_id=sample.user_id,
                request_id=_extract_request_id(scope, self.request_id_header),
                metadata={"method": sample.method, "path": sample.path},
            )
