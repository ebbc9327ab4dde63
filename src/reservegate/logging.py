"""
Loguru setup for the gateway: JSON lines for collectors, plain text for local runs.

Request handlers wrap their work in ``trace_context(request_id)`` so every
line logged for a conversion carries the originating request id.
"""

import json
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

from loguru import logger

from reservegate.config import settings

logger.remove()

_service_name = settings.service_name

TEXT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | "
    "{extra[trace_id]} - {message}"
)

# Rotated file sink
FILE_ROTATION = "100 MB"
FILE_RETENTION = "7 days"


def serialize(record: Dict[str, Any]) -> str:
    """Render a record as one JSON line: service, component, trace id and extras."""
    payload = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "service": _service_name,
        "message": record["message"],
        "function": record["function"],
        "line": record["line"],
    }
    for key, value in record["extra"].items():
        if key not in payload and key != "serialized":
            payload[key] = value

    if record["exception"] is not None:
        payload["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    # Returned string is itself a format template, so route the JSON through extra
    record["extra"]["serialized"] = json.dumps(payload, default=str)
    return "{extra[serialized]}\n"


def configure_logging(service_name: Optional[str] = None):
    """(Re)install the stdout sink and, if configured, the rotated file sink."""
    global _service_name
    if service_name:
        _service_name = service_name

    monitoring = settings.monitoring
    logger.remove()
    logger.configure(extra={"component": "-", "trace_id": "-"})

    logger.add(
        sys.stdout,
        format=serialize if monitoring.log_format == "json" else TEXT_FORMAT,
        level=monitoring.log_level,
        diagnose=False,
    )
    if monitoring.log_file:
        logger.add(
            monitoring.log_file,
            format=serialize,
            level=monitoring.log_level,
            rotation=FILE_ROTATION,
            retention=FILE_RETENTION,
            compression="gz",
            diagnose=False,
        )

    logger.info(
        "Logging configured",
        service=_service_name,
        environment=settings.environment.value,
        log_level=monitoring.log_level,
        log_format=monitoring.log_format,
    )


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """Tag every log line inside the block with ``trace_id`` (generated if absent)."""
    trace_id = trace_id or str(uuid.uuid4())
    with logger.contextualize(trace_id=trace_id):
        yield trace_id


def get_logger(name: str):
    return logger.bind(component=name)


configure_logging()


__all__ = ["logger", "get_logger", "trace_context", "configure_logging"]
