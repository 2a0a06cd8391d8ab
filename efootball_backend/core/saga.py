# saga.py
# Ordered multi-entity updates without rollback: run steps in a fixed order and
# report how far we got when one of them fails.

import logging
from typing import Callable, List

from efootball_backend.core.errors import LeagueError, PartialUpdateError

logger = logging.getLogger(__name__)


class Saga:
    """
    Records the name of every step that completed.
    A failing first step re-raises the original error (nothing was applied);
    a failure after that becomes a PartialUpdateError listing the applied steps.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.completed: List[str] = []

    def step(self, name: str, fn: Callable, *args, **kwargs):
        try:
            result = fn(*args, **kwargs)
        except LeagueError as e:
            if not self.completed:
                raise
            logger.error(
                f"❌ {self.operation}: step '{name}' failed after {self.completed}: {e}"
            )
            raise PartialUpdateError(self.operation, list(self.completed), name, e) from e
        self.completed.append(name)
        logger.debug(f"{self.operation}: step '{name}' done")
        return result
