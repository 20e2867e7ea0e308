"""
Serial request queue.

All backend calls in the process go through one ``SerialRequestQueue``: an
``asyncio.Queue`` of ``QueuedTask`` objects drained by a single worker task.
The worker awaits each backend call to completion before taking the next
task, so at most one call is in flight and execution order equals admission
order. A failing task only fails its own future.
"""

import asyncio
import contextlib
import logging
import time
from typing import Any, Awaitable, Callable

from verdict_proxy.core.exceptions import QueueClosedError
from verdict_proxy.core.metrics_recorder import MetricsRecorder
from verdict_proxy.core.types import InferenceRequest, QueuedTask

logger = logging.getLogger(__name__)

BackendCall = Callable[[InferenceRequest], Awaitable[Any]]


class SerialRequestQueue:
    """FIFO queue with a single worker executing one backend call at a time"""

    def __init__(self, backend_call: BackendCall, recorder: MetricsRecorder | None = None):
        self._backend_call = backend_call
        self._recorder = recorder or MetricsRecorder()
        self._queue: asyncio.Queue[QueuedTask] | None = None
        self._worker: asyncio.Task | None = None
        self._active: QueuedTask | None = None
        self._closed = False
        self._completed = 0
        self._failed = 0
        self._skipped = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def depth(self) -> int:
        """Pending tasks plus the active one"""
        return self.pending + (1 if self._active is not None else 0)

    @property
    def active_task(self) -> QueuedTask | None:
        return self._active

    async def start(self) -> None:
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._closed = False
        self._worker = asyncio.create_task(self._drain(), name="serial-request-queue")
        logger.info("Serial request queue started")

    async def submit(self, request: InferenceRequest) -> Any:
        """Admit a request and wait for its own backend result"""
        if self._closed:
            raise QueueClosedError("Request queue is shut down")
        if not self.is_running:
            await self.start()

        task = QueuedTask(request=request, future=asyncio.get_running_loop().create_future())
        self._queue.put_nowait(task)
        logger.info(
            "Admitted task %d (model=%s, images=%d, image_bytes=%d), queue depth %d",
            task.task_id,
            request.model,
            len(request.images),
            request.image_bytes_total,
            self.depth,
        )
        self._recorder.record_admission(self.depth, request.image_bytes_total)
        return await task.future

    async def join(self) -> None:
        """Wait until every admitted task has settled"""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, drain: bool = False) -> None:
        """Stop the worker; unfinished tasks fail with QueueClosedError"""
        self._closed = True
        if drain and self.is_running:
            await self.join()

        active = self._active
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        abandoned = []
        if active is not None:
            abandoned.append(active)
        while self._queue is not None and not self._queue.empty():
            abandoned.append(self._queue.get_nowait())
            self._queue.task_done()

        for task in abandoned:
            if not task.future.done():
                task.future.set_exception(QueueClosedError("Request queue shut down before the task finished"))
        if abandoned:
            logger.warning("Serial request queue stopped with %d unfinished task(s)", len(abandoned))
        else:
            logger.info("Serial request queue stopped")
        self._recorder.record_depth(0)

    def stats(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "depth": self.depth,
            "pending": self.pending,
            "active": self._active.describe() if self._active is not None else None,
            "completed": self._completed,
            "failed": self._failed,
            "skipped": self._skipped,
        }

    async def _drain(self) -> None:
        while True:
            task = await self._queue.get()
            try:
                if task.future.done():
                    # Caller stopped waiting before its turn came
                    self._skipped += 1
                    logger.info("Skipping task %d, caller no longer waiting", task.task_id)
                    continue
                await self._execute(task)
            finally:
                self._queue.task_done()

    async def _execute(self, task: QueuedTask) -> None:
        self._active = task
        task.started_at = time.monotonic()
        self._recorder.record_start(self.depth, task.started_at - task.enqueued_at)
        model = task.request.model
        try:
            result = await self._backend_call(task.request)
        except Exception as e:
            duration = time.monotonic() - task.started_at
            self._failed += 1
            logger.error("Task %d failed after %.2fs: %s", task.task_id, duration, e)
            self._recorder.record_error(e, duration, model)
            if not task.future.done():
                task.future.set_exception(e)
        else:
            duration = time.monotonic() - task.started_at
            self._completed += 1
            logger.info("Task %d completed in %.2fs", task.task_id, duration)
            self._recorder.record_success(duration, model)
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._active = None
            self._recorder.record_depth(self.depth)
