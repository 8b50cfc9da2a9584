"""Python logging handler adapter for error reporting.

This adapter bridges Python's standard library logging module to the
ErrorReporter, so ``logger.error`` and ``logger.exception`` calls anywhere
in the platform become ErrorRecords.
"""

import asyncio
import concurrent.futures
import logging
import traceback
from typing import Any

from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.models import ErrorRecord

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Extra fields lifted out of metadata into ErrorRecord fields
_RECORD_FIELDS = ("component", "user_id", "request_id")

# Records from this package are skipped so failures while reporting an
# error cannot feed back into the handler.
_OWN_LOGGER_PREFIX = "tailorpulse"


class ErrorRecordHandler(logging.Handler):
    """Logging handler that reports ERROR-and-above records as ErrorRecords.

    The error type is the exception class name when the record carries
    exception info, else the level name. The component defaults to the
    logger name and can be overridden with ``extra={"component": ...}``.

    Inside a running event loop the write is scheduled as a task. From
    another thread (e.g., a threadpool running sync endpoints) it is
    handed to the loop given as ``loop``, so loop-bound clients such as a
    Redis pool stay on their own loop. Without a usable loop it runs to
    completion with ``asyncio.run``.

    Example:
        ```python
        reporter = ErrorReporter(InMemoryErrorStorage())
        logging.getLogger().addHandler(ErrorRecordHandler(reporter))
        ```
    """

    def __init__(
        self,
        reporter: ErrorReporter,
        level: int = logging.ERROR,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(level)
        self._reporter = reporter
        self._loop = loop
        self._pending: set[asyncio.Task[None]] = set()
        self._threaded: set[concurrent.futures.Future[None]] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Set the loop that receives records emitted from other threads."""
        self._loop = loop

    def emit(self, record: logging.LogRecord) -> None:
        """Convert a log record and hand it to the reporter.

        Args:
            record: The log record to emit.
        """
        if record.name.split(".")[0] == _OWN_LOGGER_PREFIX:
            return
        try:
            error = self.to_error_record(record)
        except Exception:
            self.handleError(record)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._emit_from_thread(error)
            return
        task = loop.create_task(self._reporter.record(error))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _emit_from_thread(self, error: ErrorRecord) -> None:
        loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            asyncio.run(self._reporter.record(error))
            return
        future = asyncio.run_coroutine_threadsafe(self._reporter.record(error), loop)
        self._threaded.add(future)
        future.add_done_callback(self._threaded.discard)

    async def drain(self) -> None:
        """Wait for scheduled writes. Call from the bound loop."""
        pending = [
            *self._pending,
            *(asyncio.wrap_future(f) for f in list(self._threaded)),
        ]
        if pending:
            await asyncio.gather(*pending)

    @staticmethod
    def to_error_record(record: logging.LogRecord) -> ErrorRecord:
        """Build an ErrorRecord from a LogRecord."""
        metadata: dict[str, Any] = {
            "logger": record.name,
            "level": record.levelname,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }
        fields: dict[str, str] = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_LOGRECORD_ATTRS:
                continue
            if key in _RECORD_FIELDS and value is not None:
                fields[key] = str(value)
            elif isinstance(value, (str, int, float, bool)):
                metadata[key] = value

        error_type = record.levelname
        message = record.getMessage()
        stack = None
        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                error_type = exc_type.__name__
                stack = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )
            if exc_value is not None:
                metadata["exc_message"] = str(exc_value)

        return ErrorRecord(
            type=error_type,
            message=message,
            component=fields.get("component", record.name),
            timestamp=record.created,
            stack=stack,
            user_id=fields.get("user_id"),
            request_id=fields.get("request_id"),
            metadata=metadata,
        )
