"""Fire-and-forget background jobs with per-video cancellation."""

import asyncio
from collections.abc import Coroutine
from typing import Any

from src.commons.telemetry import get_logger
from src.infrastructure.video.cancellation import CancellationToken


class BackgroundJobRunner:
    """Runs detached asyncio tasks and logs their failures.

    Tasks are held by strong reference until they finish. Nothing bounds
    how many run at once. A video may have a cancellation token registered
    so deletion can signal its in-flight job.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._tokens: dict[str, CancellationToken] = {}
        self._logger = get_logger(__name__)

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        name: str,
        coro: Coroutine[Any, Any, Any],
        video_id: str | None = None,
    ) -> asyncio.Task[Any]:
        """Start ``coro`` in the background and return immediately."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(t, name, video_id))
        self._logger.debug(f"Job {name} started", extra={"video_id": video_id})
        return task

    def _on_done(
        self,
        task: asyncio.Task[Any],
        name: str,
        video_id: str | None,
    ) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self._logger.info(f"Job {name} cancelled", extra={"video_id": video_id})
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                f"Job {name} failed: {exc}",
                exc_info=exc,
                extra={"video_id": video_id},
            )

    def token_for(self, video_id: str, token: CancellationToken) -> CancellationToken:
        """Register ``token`` as the cancellation signal for ``video_id``."""
        self._tokens[video_id] = token
        return token

    def release(self, video_id: str, token: CancellationToken) -> None:
        """Forget the token for ``video_id`` if it is still the registered one."""
        if self._tokens.get(video_id) is token:
            del self._tokens[video_id]

    def cancel(self, video_id: str, reason: str = "video deleted") -> bool:
        """Signal the in-flight job of ``video_id``, if any."""
        token = self._tokens.pop(video_id, None)
        if token is None:
            return False
        token.cancel(reason)
        return True

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Cancel outstanding jobs and wait for them to unwind."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        self._logger.info(f"Cancelling {len(pending)} background jobs")
        for task in pending:
            task.cancel()
        await asyncio.wait(pending, timeout=timeout)
