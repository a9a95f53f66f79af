import asyncio
import inspect
import logging
from typing import Any, Callable

__all__ = ["CleanupQueue"]

logger = logging.getLogger(__name__)


class CleanupQueue:
    """Jobs to run on shutdown, consumed in reverse order of registration"""

    def __init__(self) -> None:
        self._jobs: list[tuple[str, Callable, tuple, dict]] = []

    @property
    def has_jobs(self) -> bool:
        return bool(self._jobs)

    def push(self, name: str, func: Callable, *args: Any, **kwargs: Any) -> None:
        self._jobs.append((name, func, args, kwargs))

    async def consume_all(self) -> None:
        while self._jobs:
            (name, func, args, kwargs) = self._jobs.pop()

            logger.debug(f"Running cleanup job '{name}'")

            try:
                result = func(*args, **kwargs)

                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Cleanup job '{name}' failed: {e}")
