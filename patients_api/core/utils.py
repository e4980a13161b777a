import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union


class LoggerMixin:
    """
    Mixin adding structured logging helpers to a class.

    Messages may be plain strings or dictionaries describing an event,
    e.g. ``{"event": "patient_archived", "patient_id": "..."}``. The logger
    is named after the concrete class.

    Example:
        class PatientExporter(LoggerMixin):
            def export(self):
                self.log_info({"event": "export_started"})
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._logger: Optional[logging.Logger] = None

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger(self.__class__.__name__)
        return self._logger

    def _format_message(self, message: Union[str, Dict[str, Any]]) -> str:
        if isinstance(message, dict):
            return " ".join(f"{key}={value}" for key, value in message.items())
        return message

    def log_info(self, message: Union[str, Dict[str, Any]], **kwargs) -> None:
        self.logger.info(self._format_message(message), **kwargs)

    def log_warning(self, message: Union[str, Dict[str, Any]], **kwargs) -> None:
        self.logger.warning(self._format_message(message), **kwargs)

    def log_error(
        self, message: Union[str, Dict[str, Any]], exc_info: bool = False, **kwargs
    ) -> None:
        """
        Log an error level message.

        Args:
            message: Message to log (string or dict)
            exc_info: Attach the active exception's traceback if True
            **kwargs: Additional context passed to the logger
        """
        self.logger.error(self._format_message(message), exc_info=exc_info, **kwargs)

    def log_debug(self, message: Union[str, Dict[str, Any]], **kwargs) -> None:
        self.logger.debug(self._format_message(message), **kwargs)


class _ModuleLevelLogger(LoggerMixin):
    """Shared logger instance with a fixed name."""

    def __init__(self):
        self._logger = logging.getLogger("patients_api")


logger = _ModuleLevelLogger()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """
    Timestamp for a mutation that must sort strictly after ``previous``.

    Clock resolution can hand back the same value twice in a row, so the
    result is bumped by a microsecond when it would not advance.
    """
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now
