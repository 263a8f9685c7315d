"""
Structured logging for beamcomplete.

Tracks trigger decisions, inference round-trips and session activity.
Nothing is written to stdout, which carries the JSON-RPC protocol.

Each level gets its own file in a date-stamped folder under the system
temp directory (or BEAMCOMPLETE_LOG_DIR):
  beamcomplete-logs/YYYY-MM-DD/info.log
  beamcomplete-logs/YYYY-MM-DD/error.log
  ...
"""

import logging
import tempfile
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional


LEVEL_FILES = (
    (logging.DEBUG, 'debug.log'),
    (logging.INFO, 'info.log'),
    (logging.WARNING, 'warning.log'),
    (logging.ERROR, 'error.log'),
)


def default_log_dir() -> Path:
    # The editor picks our working directory, so never log there
    today = datetime.now().strftime("%Y-%m-%d")
    return Path(tempfile.gettempdir()) / 'beamcomplete-logs' / today


class BeamLogger:
    """Component-tagged logger shared by the trigger, inference and service layers."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.logger = logging.getLogger("beamcomplete")
            self.log_dir: Optional[Path] = None
            self._initialized = True

    def configure(self, level: str = "INFO", log_dir: Optional[str] = None):
        """
        Route records at ``level`` and above to per-level files.

        Args:
            level: DEBUG, INFO, WARNING or ERROR
            log_dir: Directory for the log files (default: default_log_dir())
        """
        self.log_dir = Path(log_dir) if log_dir else default_log_dir()
        self.log_dir.mkdir(parents=True, exist_ok=True)

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        formatter = logging.Formatter('%(asctime)s [%(component)-9s] %(message)s', datefmt='%H:%M:%S')
        threshold = getattr(logging, level.upper(), logging.INFO)

        for file_level, filename in LEVEL_FILES:
            if file_level < threshold:
                continue
            handler = logging.FileHandler(self.log_dir / filename, mode='a', encoding='utf-8')
            handler.setFormatter(formatter)
            handler.addFilter(lambda record, file_level=file_level: record.levelno == file_level)
            self.logger.addHandler(handler)

    def _log(self, level: int, component: str, msg: str):
        self.logger.log(level, msg, extra={'component': component})

    # === TRIGGER ===

    def trigger_evaluated(self, file_path: str, offset: int, matched: bool):
        status = "MATCH" if matched else "no match"
        self._log(logging.DEBUG, 'TRIGGER', f"{file_path}@{offset}: {status}")

    def fallback_used(self, reason: str, count: int):
        self._log(logging.INFO, 'TRIGGER', f"Offering {count} transform names ({reason})")

    # === INFERENCE ===

    def inference_request(self, url: str, prompt_chars: int):
        self._log(logging.DEBUG, 'INFERENCE', f"POST {url} ({prompt_chars:,} prompt chars)")

    def inference_response(self, url: str, status: int, completion_chars: int, elapsed: float):
        self._log(logging.INFO, 'INFERENCE',
                  f"HTTP {status} from {url}: {completion_chars} chars in {elapsed:.2f}s")

    def inference_error(self, url: str, error: str):
        self._log(logging.ERROR, 'INFERENCE', f"Error from {url}: {error}")

    # === SESSION ===

    def session_dispatch(self, request_id, pending: int):
        self._log(logging.DEBUG, 'SESSION', f"Dispatched request {request_id} ({pending} pending)")

    def session_cancelled(self, request_id):
        self._log(logging.INFO, 'SESSION', f"Cancelled request {request_id}")

    def session_closed(self, cancelled: int):
        self._log(logging.INFO, 'SESSION', f"Session closed ({cancelled} requests cancelled)")

    # === SERVICE ===

    def service_request(self, method: str, request_id):
        self._log(logging.DEBUG, 'SERVICE', f"Handling {method} (id={request_id})")

    def service_event(self, message: str):
        self._log(logging.INFO, 'SERVICE', message)

    # === ERRORS & WARNINGS ===

    def error(self, component: str, message: str, exception: Optional[Exception] = None):
        if exception is not None:
            trace = ''.join(traceback.format_exception(type(exception), exception, exception.__traceback__))
            message = f"{message}\n{trace}"
        self._log(logging.ERROR, component.upper(), f"ERROR: {message}")

    def warning(self, component: str, message: str):
        self._log(logging.WARNING, component.upper(), f"WARNING: {message}")


# Global instance
logger = BeamLogger()
