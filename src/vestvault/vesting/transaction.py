from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


class UndoLog:
    """
    Ordered list of compensating actions for uncommitted state changes.

    Each local mutation registers its inverse right after it is applied. If
    the surrounding ``atomic`` block raises, the inverses run newest first
    and the original exception propagates.
    """

    def __init__(self) -> None:
        self._undo: list[tuple[str, Callable[[], None]]] = []

    def record(self, description: str, undo: Callable[[], None]) -> None:
        self._undo.append((description, undo))

    def rollback(self) -> None:
        while self._undo:
            description, undo = self._undo.pop()
            undo()
            logger.debug("Rolled back %s", description)


@contextmanager
def atomic() -> Iterator[UndoLog]:
    log = UndoLog()
    try:
        yield log
    except BaseException:
        log.rollback()
        raise
