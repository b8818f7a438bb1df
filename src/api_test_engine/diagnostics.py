"""Correlation-aware logging helpers."""

import logging
import uuid


class TraceAdapter(logging.LoggerAdapter):
    """Prefixes every record with the request's trace id."""

    def process(self, msg, kwargs):
        return f"[traceId={self.extra['trace_id']}] {msg}", kwargs


def new_trace_id() -> str:
    return uuid.uuid4().hex[:12]


def trace_logger(logger: logging.Logger, trace_id: str) -> TraceAdapter:
    """Wrap a module logger so its records carry the given trace id."""
    return TraceAdapter(logger, {"trace_id": trace_id})
