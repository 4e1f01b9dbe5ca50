# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from collections.abc import Mapping
from datetime import datetime
import inspect
import logging
import logging.handlers
import os
from pathlib import Path
import sys
import tempfile
import traceback
from types import TracebackType
from typing import Any

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

from imtoggle.constants import IMTOGGLE_LOG_DIR, IMTOGGLE_PROJECT_ROOT

logging.getLogger("asyncio").setLevel(logging.ERROR)

_LOG_FILE_PATH: Path | None = None


def _get_log_directory() -> Path:
    if "IMTOGGLE_LOG_DIR" in os.environ or (IMTOGGLE_PROJECT_ROOT / ".git").exists():
        log_dir = IMTOGGLE_LOG_DIR
    else:
        # installed package, follow XDG
        xdg_state_home = os.getenv("XDG_STATE_HOME")
        if xdg_state_home:
            log_dir = Path(xdg_state_home) / "imtoggle" / "logs"
        else:
            log_dir = Path.home() / ".local" / "state" / "imtoggle" / "logs"

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        log_dir = Path(tempfile.gettempdir()) / "imtoggle" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

    return log_dir


def _configure_structlog() -> Path:
    global _LOG_FILE_PATH

    if _LOG_FILE_PATH:
        return _LOG_FILE_PATH

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    _LOG_FILE_PATH = _get_log_directory() / f"imtoggle_{timestamp}_{os.getpid()}.jsonl"

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return _LOG_FILE_PATH


_CONSOLE_NAME_WIDTH = 28
_CONSOLE_USE_COLORS = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

_CONSOLE_LEVEL_COLORS = {
    "dbg": "\033[1;36m",
    "inf": "\033[1;32m",
    "war": "\033[1;33m",
    "err": "\033[1;31m",
    "cri": "\033[1;31m",
}
_CONSOLE_RESET = "\033[0m"
_CONSOLE_DIM = "\033[2m"
_CONSOLE_KEY = "\033[0;36m"
_CONSOLE_VAL = "\033[0;35m"

_HIDDEN_KEYS = (
    "func_name",
    "lineno",
    "exception",
    "exc_info",
    "exception_type",
    "exception_message",
    "traceback_lines",
    "_record",
    "_from_structlog",
)


def _console_time(timestamp: str) -> str:
    if timestamp:
        try:
            dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return timestamp[:12]
    else:
        dt = datetime.now()
    return dt.strftime("%H:%M:%S") + f".{dt.microsecond // 1000:03d}"


def _compact_console_processor(logger: Any, method_name: str, event_dict: Mapping[str, Any]) -> str:
    """Render `HH:MM:SS.mmm [lvl][logger name] event key=value ...`."""
    fields = dict(event_dict)

    time_str = _console_time(fields.pop("timestamp", ""))
    level = fields.pop("level", "???")[:3].lower()
    name = fields.pop("logger", "")[-_CONSOLE_NAME_WIDTH:]
    name = f"{name:<{_CONSOLE_NAME_WIDTH}s}"
    event = fields.pop("event", "")

    for key in _HIDDEN_KEYS:
        fields.pop(key, None)

    items = sorted(fields.items())
    if not _CONSOLE_USE_COLORS:
        line = f"{time_str} [{level}][{name}] {event}"
        if items:
            line += " " + " ".join(f"{k}={v}" for k, v in items)
        return line

    R = _CONSOLE_RESET
    line = (
        f"{_CONSOLE_DIM}{time_str}{R} "
        f"{_CONSOLE_LEVEL_COLORS.get(level, '')}[{level}]{R}"
        f"{_CONSOLE_DIM}[{name}]{R} {event}"
    )
    if items:
        line += " " + " ".join(f"{_CONSOLE_KEY}{k}{R}={_CONSOLE_VAL}{v}{R}" for k, v in items)
    return line


def setup_logger(name: str | None = None, *, level: int | None = None) -> Any:
    """Set up a structured logger.

    Every logger writes a compact line to stdout and a JSON record to the shared
    rotating log file of this process.

    Args:
        name: Logger name. Defaults to the caller's file path relative to the
            project root.
        level: The logging level. Defaults to ``IMTOGGLE_LOG_LEVEL`` or INFO.

    Returns:
        A configured structlog logger instance.
    """
    if name is None:
        name = inspect.stack()[1].filename
        try:
            name = str(Path(name).relative_to(IMTOGGLE_PROJECT_ROOT))
        except ValueError:
            pass

    log_file_path = _configure_structlog()

    if level is None:
        level = getattr(logging, os.getenv("IMTOGGLE_LOG_LEVEL", "INFO").upper(), logging.INFO)

    stdlib_logger = logging.getLogger(name)
    if stdlib_logger.hasHandlers():
        stdlib_logger.handlers.clear()
    stdlib_logger.setLevel(level)
    stdlib_logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_compact_console_processor)
    )
    stdlib_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        mode="a",
        maxBytes=10 * 1024 * 1024,
        backupCount=20,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    )
    stdlib_logger.addHandler(file_handler)

    return structlog.get_logger(name)


def setup_exception_handler() -> None:
    """Route uncaught exceptions to the JSON log and print them with rich."""
    from rich.console import Console
    from rich.traceback import Traceback

    def handle_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        setup_logger("imtoggle.uncaught").error(
            "Uncaught exception occurred",
            exc_info=(exc_type, exc_value, exc_traceback),
            exception_type=exc_type.__name__,
            exception_message=str(exc_value),
            traceback_lines=traceback.format_exception(exc_type, exc_value, exc_traceback),
        )
        Console(stderr=True).print(Traceback.from_exception(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception
