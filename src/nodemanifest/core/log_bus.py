"""Fan-out of records emitted by `NodeManifestLogger`.

Tests and the CLI observe warnings (missing nodes, ambiguous page mappings)
and the batch summary by subscribing here instead of patching the logger.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    message: str
    plain: str
    logger_name: str


LogSubscriber = Callable[[LogRecord], None]


class LogBus:
    def __init__(self) -> None:
        self._subscribers: list[tuple[frozenset[str] | None, LogSubscriber]] = []

    def subscribe(
        self, cb: LogSubscriber, *, levels: Iterable[str] | None = None
    ) -> Callable[[], None]:
        """Receive records of `levels` (case-insensitive), or all records when None.

        Returns:
            Callable that removes this subscription
        """
        wanted = None if levels is None else frozenset(level.upper() for level in levels)
        subscription = (wanted, cb)
        self._subscribers.append(subscription)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(subscription)

        return _unsubscribe

    def publish(self, record: LogRecord) -> None:
        for wanted, cb in list(self._subscribers):
            if wanted is not None and record.level_name not in wanted:
                continue
            try:
                cb(record)
            except Exception as e:
                # Going through the logger here would publish again.
                with contextlib.suppress(Exception):
                    sys.stderr.write(
                        f"log subscriber {cb!r} failed on {record.level_name} record: "
                        f"{type(e).__name__}: {e}\n"
                    )

    def clear(self) -> None:
        self._subscribers.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
