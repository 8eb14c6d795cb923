"""Structured logging: console plus a JSON-lines event log of search lifecycles."""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from src.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0ms"
    if seconds >= 1:
        return f"{seconds:.1f}s"
    ms = seconds * 1000
    if ms >= 1:
        return f"{ms:.0f}ms"
    if ms > 0:
        return "<1ms"
    return "0ms"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed domain)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


def _render(message: str, args: tuple) -> str:
    """The message as the console shows it, for the event log."""
    if not args:
        return message
    try:
        return message % args
    except (TypeError, ValueError):
        return f"{message} {args!r}"


def _logging_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    # Only keywords the stdlib logger understands
    allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
    return {k: v for k, v in kwargs.items() if k in allowed}


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    # 38;5;N = foreground 256-color
    codes = {
        "domain": "\033[38;5;81m",  # cyan for domain names
        "ok": "\033[38;5;78m",
        "fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class SearchLogger:
    def __init__(self):
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = config.logs_dir / "search.log"
        self._file_lock = threading.Lock()
        self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("janmat")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(logging.INFO)
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)
        self._setup_third_party_console_logging()

    def _setup_third_party_console_logging(self):
        # httpx logs every request at INFO; keep it quieter than our own lines
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _event(self, event_type: str, **data: Any) -> None:
        self.log_event(
            LogEvent(event_type=event_type, timestamp=self._timestamp(), data=data)
        )

    def search_scheduled(self, query: str, delay_seconds: float) -> None:
        self._event("SEARCH_SCHEDULED", query=query[:200], delay_seconds=delay_seconds)
        self.console.debug(
            "Search scheduled in %s: %r", _format_duration(delay_seconds), query[:80]
        )

    def search_dispatched(self, generation: int, query: str, domains: list[str]) -> None:
        self._event(
            "SEARCH_DISPATCHED", generation=generation, query=query[:200], domains=domains
        )
        self.console.info(
            "Search #%s %r → %s%s%s",
            generation,
            query[:80],
            _c("domain"),
            ", ".join(domains) or "(no domains)",
            _reset(),
        )

    def domain_completed(
        self, generation: int, domain: str, count: int, elapsed_seconds: float
    ) -> None:
        self._event(
            "DOMAIN_COMPLETED",
            generation=generation,
            domain=domain,
            count=count,
            elapsed_ms=round(elapsed_seconds * 1000, 1),
        )
        self.console.debug(
            "  %s%s%s: %s results %s(%s)%s",
            _c("domain"),
            domain,
            _reset(),
            count,
            _c("duration"),
            _format_duration(elapsed_seconds),
            _reset(),
        )

    def domain_failed(self, generation: int, domain: str, reason: str) -> None:
        self._event(
            "DOMAIN_FAILED", generation=generation, domain=domain, reason=reason[:500]
        )
        self.console.warning(
            "  %s%s failed%s: %s",
            _c("fail"),
            domain,
            _reset(),
            _short_reason(reason),
        )

    def stale_discarded(self, generation: int, current: int, domain: str | None = None) -> None:
        self._event(
            "STALE_DISCARDED", generation=generation, current=current, domain=domain
        )
        self.console.debug(
            "Discarded %s from search #%s (current #%s)",
            domain or "merge",
            generation,
            current,
        )

    def search_published(
        self, generation: int, total: int, errors: int, elapsed_seconds: float
    ) -> None:
        self._event(
            "SEARCH_PUBLISHED",
            generation=generation,
            total=total,
            errors=errors,
            elapsed_ms=round(elapsed_seconds * 1000, 1),
        )
        status = f"{_c('ok')}[ok]{_reset()}" if not errors else f"{_c('fail')}[{errors} failed]{_reset()}"
        self.console.info(
            "Search #%s done: %s results %s %s(%s)%s",
            generation,
            total,
            status,
            _c("duration"),
            _format_duration(elapsed_seconds),
            _reset(),
        )

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        self._event(
            "ERROR",
            message=_render(message, args)[:500],
            exception=str(exception) if exception else None,
        )

        log_kwargs = _logging_kwargs(kwargs)
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception

        self.console.error(f"❌ Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        self.console.info(message, *args, **_logging_kwargs(kwargs))

    def warning(self, message: str, *args, **kwargs):
        self._event("WARNING", message=_render(message, args)[:500])
        self.console.warning(f"⚠️ {message}", *args, **_logging_kwargs(kwargs))


logger = SearchLogger()
