import logging
from typing import Any, List, Optional

from immosync.schemas.sync import SyncMessage

logger = logging.getLogger("immosync.sync")


class SyncLogger:
    """Logs sync progress and keeps operator-facing messages for the status view.

    ``debug`` only reaches the log. ``info`` and ``error`` are also collected
    so the operator can review a run after it finished.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self._logger = logging.getLogger(name) if name else logger
        self.messages: List[SyncMessage] = []

    def _emit(self, level: int, message: str, context: Optional[dict[str, Any]]) -> None:
        if context:
            self._logger.log(level, "%s %s", message, context)
        else:
            self._logger.log(level, message)

    def debug(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, message, context)

    def info(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, message, context)
        self.messages.append(SyncMessage(level="info", message=message, context=context))

    def error(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self._emit(logging.ERROR, message, context)
        self.messages.append(SyncMessage(level="error", message=message, context=context))

    @property
    def has_errors(self) -> bool:
        return any(message.level == "error" for message in self.messages)
