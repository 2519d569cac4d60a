"""JSON logging for ds-hub.

Every resource operation (create/read/update/delete/import) runs inside an
OperationContext. Log lines emitted anywhere below it, including the gateway
client and the convergence loops, carry the operation's trace id, name and
datastore id without passing them through every call.

Convergence loops log one line per refresh; those lines are grouped under a
"converge" object and rate limited per (event, loop, datastore).
"""

import logging
import sys
import time
from collections import Counter, defaultdict, deque
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pythonjsonlogger import jsonlogger

from dshub.app.config import get_settings

CONVERGE_FIELDS = ("loop", "attempt", "wait_s", "state")


@dataclass(frozen=True)
class OperationContext:
    trace_id: str
    operation: str
    ds_id: str | None = None


operation_ctx: ContextVar[OperationContext | None] = ContextVar("operation", default=None)


def begin_operation(
    operation: str, *, ds_id: str | None = None, trace_id: str | None = None
) -> OperationContext:
    """Enter an operation context, generating a trace id if not provided."""
    ctx = OperationContext(trace_id=trace_id or str(uuid4()), operation=operation, ds_id=ds_id)
    operation_ctx.set(ctx)
    return ctx


def bind_datastore(ds_id: str) -> None:
    """Attach the datastore id once it is known (e.g. right after create)."""
    ctx = operation_ctx.get()
    if ctx is not None:
        operation_ctx.set(replace(ctx, ds_id=ds_id))


def end_operation() -> None:
    operation_ctx.set(None)


def current_operation() -> OperationContext | None:
    return operation_ctx.get()


def get_trace_id() -> str | None:
    ctx = operation_ctx.get()
    return ctx.trace_id if ctx else None


class RateLimitFilter(logging.Filter):
    """Caps repeated log lines per key within a sliding minute.

    Records carrying an ``event`` extra are keyed by (event, loop, ds_id),
    so one long delete wait cannot silence another datastore's loop. Other
    records are keyed by logger and message template. ERROR and above
    always pass. The first record let through after a suppression carries
    ``suppressed=<count>``.
    """

    def __init__(
        self, rate_per_minute: int = 100, clock: Callable[[], float] = time.monotonic
    ) -> None:
        super().__init__()
        self.rate_per_minute = rate_per_minute
        self._clock = clock
        self._windows: dict[tuple, deque[float]] = defaultdict(deque)
        self._suppressed: Counter[tuple] = Counter()

    @staticmethod
    def key_for(record: logging.LogRecord) -> tuple:
        event = getattr(record, "event", None)
        if event is None:
            return (record.name, str(record.msg))
        ds_id = getattr(record, "ds_id", None)
        if ds_id is None and (ctx := current_operation()) is not None:
            ds_id = ctx.ds_id
        return (str(event), getattr(record, "loop", None), ds_id)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = self.key_for(record)
        now = self._clock()
        window = self._windows[key]
        while window and now - window[0] >= 60:
            window.popleft()

        if len(window) >= self.rate_per_minute:
            self._suppressed[key] += 1
            return False

        window.append(now)
        if dropped := self._suppressed.pop(key, 0):
            record.suppressed = dropped
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service identity and operation context.

    Fields:
    - timestamp, level, logger
    - schema_version, service
    - trace_id, operation, ds_id: from the OperationContext (explicit
      extras win)
    - converge: {loop, attempt, wait_s, state} for convergence loop lines
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        settings = get_settings()
        self._schema_version = settings.logging.schema_version
        self._service = settings.logging.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["schema_version"] = self._schema_version
        log_record["service"] = self._service

        if (ctx := current_operation()) is not None:
            log_record["trace_id"] = ctx.trace_id
            log_record.setdefault("operation", ctx.operation)
            if ctx.ds_id is not None:
                log_record.setdefault("ds_id", ctx.ds_id)

        if "loop" in log_record:
            log_record["converge"] = {
                f: log_record.pop(f) for f in CONVERGE_FIELDS if f in log_record
            }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(level: int | None = None) -> None:
    """Send JSON logs to stdout.

    Args:
        level: Log level. If None, uses LOGGING_LEVEL from settings.
    """
    settings = get_settings()
    if level is None:
        level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter())
    handler.addFilter(RateLimitFilter(settings.logging.rate_limit_per_minute))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Request lines duplicate the gateway call logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
