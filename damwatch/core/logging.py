"""
Logging setup shared by the API and the analysis sessions.

Pipeline code passes ``extra={"session_id": ...}`` so interleaved sessions can
be told apart; records without one are tagged ``-``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(session_id)s | %(message)s"


class SessionContextFilter(logging.Filter):
    """Guarantee every record has a ``session_id`` attribute for the formatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SessionContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler])


__all__ = ["LOG_FORMAT", "SessionContextFilter", "configure_logging"]
