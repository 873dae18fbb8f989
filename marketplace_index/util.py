from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any

import yaml


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def parse_json(text: str) -> Any:
    """Strict JSON: ``NaN`` and ``Infinity`` raise ``ValueError``."""
    return json.loads(text, parse_constant=_reject_constant)


def dump_json(obj: Any) -> str:
    # 2-space indent, key order preserved, non-ASCII kept verbatim.
    return json.dumps(obj, indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def write_json(path: Path, obj: Any) -> None:
    ensure_dir(path.parent)
    path.write_text(dump_json(obj), encoding="utf-8")


def read_json(path: Path):
    return parse_json(path.read_text(encoding="utf-8"))


def read_structured(path: Path):
    """Read a JSON document, or YAML when the suffix says so."""
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    return read_json(path)


_REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _REQUEST_ID.set(request_id)


def get_request_id() -> str | None:
    return _REQUEST_ID.get()


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "event": getattr(record, "event", record.msg),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="seconds"
            ),
        }
        request_id = get_request_id()
        if request_id:
            payload["request_id"] = request_id
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        return json.dumps(payload, sort_keys=True, default=str)


def setup_json_logger(name: str, *, stream: IO[str] | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonLogFormatter())
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def log_event(logger: logging.Logger, event: str, **fields: object) -> None:
    logger.info(event, extra={"event": event, "fields": fields})


class MetricsEmitter:
    """Append one JSON line per build run to ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        ensure_dir(path.parent)

    def emit(self, *, metric: str, status: str, latency_ms: float, **fields: object) -> None:
        payload: dict[str, Any] = {
            "metric": metric,
            "status": status,
            "success": status == "success",
            "latency_ms": round(latency_ms, 3),
            "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        request_id = get_request_id()
        if request_id:
            payload["request_id"] = request_id
        payload.update(fields)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, sort_keys=True) + "\n")
