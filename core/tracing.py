"""
Per-request trace identifiers.

The trace id is passed explicitly down the call chain; each layer wraps its
module logger with it so every line reads "<trace_id> | message".
"""
import logging
import uuid


class TraceLogger(logging.LoggerAdapter):

    def process(self, msg, kwargs):
        return f"{self.extra['trace_id']} | {msg}", kwargs


def new_trace_id() -> str:
    return str(uuid.uuid4())


def bind(logger: logging.Logger, trace_id: str) -> TraceLogger:
    return TraceLogger(logger, {"trace_id": trace_id})
