"""Named log channels for the URL shortener.

The service writes to three loggers instead of ad-hoc files:

- ``shorturls.service``: lifecycle events (startup, shutdown).
- ``shorturls.access``: one line per HTTP request.
- ``shorturls.errors``: click write failures and unexpected exceptions.

``LogChannels`` is created once by the ``ServiceManager``, opened at
startup and closed at shutdown, and handed to every component that
reports errors.

How to Use
===========
**Step 1 — Open on startup**::
    logs = LogChannels(log_dir="./logs", level="INFO")
    logs.open()

**Step 2 — Write**::
    logs.errors.error("Click insert error: %s", exc)

**Step 3 — Close on shutdown**::
    logs.close()
"""

import logging
from pathlib import Path

__all__ = ["LogChannels"]

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LogChannels:
    """Owns the handlers behind the service, access and error loggers."""

    def __init__(self, log_dir: str | None = None, level: str = "INFO", namespace: str = "shorturls"):
        self._log_dir = Path(log_dir) if log_dir else None
        self._level = logging.getLevelName(level.upper()) if isinstance(level, str) else level
        self._namespace = namespace
        self._handlers: list[tuple[logging.Logger, logging.Handler]] = []
        self.service = logging.getLogger(f"{namespace}.service")
        self.access = logging.getLogger(f"{namespace}.access")
        self.errors = logging.getLogger(f"{namespace}.errors")

    @property
    def is_open(self) -> bool:
        return bool(self._handlers)

    def open(self) -> None:
        if self.is_open:
            return

        formatter = logging.Formatter(_FORMAT)
        root = logging.getLogger(self._namespace)
        root.setLevel(self._level)

        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        self._attach(root, stream)

        if self._log_dir is not None:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            for name, logger in (("service", self.service), ("access", self.access), ("errors", self.errors)):
                handler = logging.FileHandler(self._log_dir / f"{name}.log", mode="a", encoding="utf-8")
                handler.setFormatter(formatter)
                self._attach(logger, handler)

    def close(self) -> None:
        for logger, handler in self._handlers:
            handler.flush()
            logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

    def _attach(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self._handlers.append((logger, handler))
