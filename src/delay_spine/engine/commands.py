"""Command queue -- deferred actions executed in FIFO order.

Commands are small objects with a ``description`` and an async ``execute``.
The invoker holds a queue and a log of what already ran, so a session can
line up "change the prefix, then run" and replay it step by step.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Protocol, runtime_checkable

from delay_spine.core.config import ConfigStore
from delay_spine.core.logging import get_logger
from delay_spine.engine.builder import Engine
from delay_spine.engine.cancellation import CancellationToken

logger = get_logger(__name__)


@runtime_checkable
class Command(Protocol):
    @property
    def description(self) -> str: ...

    async def execute(self) -> Any: ...


class RunCommand:
    """Run an engine once; ``execute`` returns the run's Result."""

    def __init__(self, engine: Engine, token: CancellationToken | None = None) -> None:
        self._engine = engine
        self._token = token

    @property
    def description(self) -> str:
        kind = getattr(self._engine.kind, "value", self._engine.kind)
        return f"Run {kind} over {len(self._engine.elements)} elements"

    async def execute(self) -> Any:
        return await self._engine.execute(self._token)


class UpdateConfigCommand:
    """Apply a partial configuration update to a store."""

    def __init__(self, store: ConfigStore, **partial: Any) -> None:
        self._store = store
        self._partial = dict(partial)

    @property
    def description(self) -> str:
        keys = ", ".join(sorted(self._partial)) or "nothing"
        return f"Update configuration: {keys}"

    async def execute(self) -> None:
        self._store.update(**self._partial)
        logger.info("command.config_updated", keys=sorted(self._partial))


class CommandInvoker:
    """FIFO queue of commands plus the list of those already executed."""

    def __init__(self) -> None:
        self._queue: deque[Command] = deque()
        self._executed: list[Command] = []

    def enqueue(self, command: Command) -> None:
        self._queue.append(command)

    async def execute_next(self) -> Any:
        """Execute the oldest queued command and return its value.

        Returns None when the queue is empty. A command that raises is not
        recorded as executed and the error propagates.
        """
        if not self._queue:
            return None
        command = self._queue.popleft()
        logger.info("command.executing", description=command.description)
        value = await command.execute()
        self._executed.append(command)
        return value

    async def execute_all(self) -> list[Any]:
        values = []
        while self._queue:
            values.append(await self.execute_next())
        return values

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    def clear(self) -> None:
        self._queue.clear()

    def executed(self) -> list[Command]:
        return list(self._executed)


__all__ = ["Command", "RunCommand", "UpdateConfigCommand", "CommandInvoker"]
