"""Logging setup, credential redaction, and the FlightLogger ring buffer for post-mortem dumps."""

import logging
import re
import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from card_lookup.core.config import get_config

FLIGHT_LOG_CAPACITY = 50_000
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
REDACTED = "REDACTED"

# urllib3 logs full request lines at DEBUG, including the OCR key query parameter.
_KEY_PARAM = re.compile(r"([?&]key=)[^&\s\"']+")

_flight_logger: "FlightLogger | None" = None


def redact(text: str) -> str:
    return _KEY_PARAM.sub(rf"\g<1>{REDACTED}", text)


class RedactKeyFilter(logging.Filter):
    """Rewrites records whose rendered message carries a `key=` query parameter."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class FlightLogger(logging.Handler):
    """
    Circular buffer handler: keeps the newest `capacity` records (all levels) in memory.
    Nothing touches disk until dump(session_id) writes {forensics_dir}/{session_id}_{timestamp}.log.
    """

    def __init__(
        self,
        capacity: int = FLIGHT_LOG_CAPACITY,
        forensics_dir: str | Path = "logs/forensics",
    ) -> None:
        super().__init__(level=logging.DEBUG)
        self._buffer: deque[logging.LogRecord] = deque(maxlen=capacity)
        self._forensics_dir = Path(forensics_dir)
        self.addFilter(RedactKeyFilter())

    def emit(self, record: logging.LogRecord) -> None:
        self._buffer.append(record)

    def dump(self, session_id: str) -> str:
        """Write the buffer, oldest first; return the path of the written file."""
        self._forensics_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filepath = self._forensics_dir / f"{session_id}_{timestamp}.log"
        formatter = self.formatter or logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
        with open(filepath, "w") as f:
            for record in self._buffer:
                f.write(formatter.format(record) + "\n")
        return str(filepath)

    def __len__(self) -> int:
        return len(self._buffer)


def get_flight_logger() -> FlightLogger | None:
    """Return the FlightLogger installed by setup_logging(), if any."""
    return _flight_logger


def setup_logging() -> None:
    """
    Configure application logging from the current Settings.

    - Root logger at DEBUG so every record reaches the handlers.
    - stdout console handler at Settings.log_level.
    - FlightLogger at DEBUG writing to Settings.forensics_dir on dump.
    - Both handlers redact the OCR key from rendered messages.

    Safe to call more than once; previously installed root handlers are replaced.
    """
    global _flight_logger
    cfg = get_config()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in root.handlers[:]:
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(cfg.log_level.upper())
    console.setFormatter(formatter)
    console.addFilter(RedactKeyFilter())
    root.addHandler(console)

    flight = FlightLogger(capacity=FLIGHT_LOG_CAPACITY, forensics_dir=cfg.forensics_dir)
    flight.setFormatter(formatter)
    root.addHandler(flight)
    _flight_logger = flight
