try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import logging

from damwatch.core.logging import LOG_FORMAT, SessionContextFilter


def _format(record: logging.LogRecord) -> str:
    SessionContextFilter().filter(record)
    return logging.Formatter(LOG_FORMAT).format(record)


def test_records_without_session_are_tagged() -> None:
    record = logging.LogRecord("damwatch", logging.INFO, __file__, 1, "hello", None, None)

    assert " | - | hello" in _format(record)


def test_session_id_from_extra_is_kept() -> None:
    logger = logging.getLogger("damwatch.test")
    record = logger.makeRecord(
        "damwatch.test", logging.INFO, __file__, 1, "Stage 1", None, None,
        extra={"session_id": "abc123"},
    )

    assert " | abc123 | Stage 1" in _format(record)
