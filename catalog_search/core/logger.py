"""Structured logging: console output plus a JSON-lines workflow log."""

import contextvars
import json
import logging
import os
import sys
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from catalog_search.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        if s < 0.05:
            return f"{m}m"
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m {s:.1f}s"
    if seconds >= 1:
        return f"{seconds:.1f}s"
    if seconds >= 0.001:
        return f"{seconds * 1000:.0f}ms"
    if seconds > 0:
        return "<1ms"
    return "0s"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed workflow)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


_log_workflow: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_workflow", default=None
)
_log_workflow_start: contextvars.ContextVar[float | None] = contextvars.ContextVar(
    "log_workflow_start", default=None
)
_log_search_type: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_search_type", default=None
)


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
        "dim": "\033[38;5;239m",
        "workflow": "\033[38;5;81m",
        "run": "\033[38;5;78m",
        "done_ok": "\033[38;5;78m",
        "done_fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
        "url": "\033[38;5;245m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


def _workflow_label() -> str:
    name = _log_workflow.get() or "search"
    search_type = _log_search_type.get()
    if search_type:
        return f"{name} › {search_type}"
    return name


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class CatalogSearchLogger:
    def __init__(self):
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = config.logs_dir / "search.log"
        self._file_lock = threading.Lock()
        self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("catalog_search")
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
        handler = logging.StreamHandler()
        handler.setLevel(logging.WARNING)
        handler.setFormatter(self._console_formatter)
        for name in ("httpx", "httpcore"):
            log = logging.getLogger(name)
            log.setLevel(logging.WARNING)
            log.propagate = False
            log.addHandler(handler)

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _prefix(self) -> str:
        if _log_workflow.get():
            return "  │ "
        return ""

    def _format_args(self, args: dict) -> str:
        """Shorten args for console so long filter payloads don't flood the log."""
        max_val = 60
        out = []
        for k, v in (args or {}).items():
            s = repr(v)
            if len(s) > max_val:
                s = s[: max_val - 3].rstrip() + "..."
            out.append(f"{k}={s}")
        return ", ".join(out)

    def workflow_start(self, workflow: str, search_type: str | None = None, **args: Any):
        _log_workflow_start.set(time.monotonic())
        _log_workflow.set(workflow)
        _log_search_type.set(search_type)
        event = LogEvent(
            event_type="WORKFLOW_START",
            timestamp=self._timestamp(),
            data={"workflow": workflow, "search_type": search_type, "args": args},
        )
        self.log_event(event)
        self.console.info(
            f"{_c('run')}▶ Run{_reset()}  {_c('workflow')}{_workflow_label()}{_reset()}"
            f"({self._format_args(args)})"
        )

    def workflow_result(self, success: bool, *, error_reason: str | None = None) -> None:
        label = _workflow_label()
        workflow = _log_workflow.get()
        start = _log_workflow_start.get()
        _log_workflow.set(None)
        _log_search_type.set(None)
        _log_workflow_start.set(None)
        elapsed = (time.monotonic() - start) if start is not None else 0.0
        data: dict[str, Any] = {
            "workflow": workflow,
            "success": success,
            "duration_seconds": round(elapsed, 3),
        }
        if not success and error_reason:
            data["error_reason"] = error_reason[:500]
        self.log_event(
            LogEvent(event_type="WORKFLOW_RESULT", timestamp=self._timestamp(), data=data)
        )
        dur_colored = f"{_c('duration')}{_format_duration(elapsed)}{_reset()}"
        if success:
            status_str = f"{_c('done_ok')}[ok]{_reset()}"
        else:
            reason = _short_reason(error_reason)
            status_str = f"{_c('done_fail')}[failed{': ' + reason if reason else ''}]{_reset()}"
        self.console.info(
            f"{_c('done_ok')}✓ Done{_reset()}  {_c('workflow')}{label}{_reset()}  "
            f"total {dur_colored}  {status_str}"
        )

    def remote_call(
        self, resource: str, search_type: str, duration_seconds: float, success: bool
    ) -> None:
        event = LogEvent(
            event_type="REMOTE_CALL",
            timestamp=self._timestamp(),
            data={
                "resource": resource,
                "search_type": search_type,
                "duration_seconds": round(duration_seconds, 3),
                "success": success,
            },
        )
        self.log_event(event)
        self.console.debug(
            f"{self._prefix()}search({resource}) {search_type} in "
            f"{_format_duration(duration_seconds)}{'' if success else ' [failed]'}"
        )

    def url_update(self, url: str, replace: bool) -> None:
        event = LogEvent(
            event_type="URL_UPDATE",
            timestamp=self._timestamp(),
            data={"url": url, "replace": replace},
        )
        self.log_event(event)
        verb = "replace" if replace else "push"
        self.console.info(f"{self._prefix()}{_c('url')}URL {verb}: {url}{_reset()}")

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        event = LogEvent(
            event_type="ERROR",
            timestamp=self._timestamp(),
            data={
                "message": message,
                "exception": str(exception) if exception else None,
            },
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception

        self.console.error(f"❌ Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.info(message, *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        event = LogEvent(
            event_type="WARNING",
            timestamp=self._timestamp(),
            data={"message": message[:500]},
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.warning(f"⚠️ {message}", *args, **log_kwargs)

    def debug(self, message: str, *args, **kwargs):
        event = LogEvent(
            event_type="DEBUG", timestamp=self._timestamp(), data={"message": message}
        )
        self.log_event(event)

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.debug(message, *args, **log_kwargs)


logger = CatalogSearchLogger()
