"""
Polling loop for long-running video jobs.

Each job is polled on a fixed interval until it reaches a terminal state or
the caller cancels through the PollHandle returned by start(). Once the
remote side reports a result URI, polling stops and the completion callback
delivers the video; the job only turns done after that. Nothing is kept in
module-level state: every loop owns its handle and task.
"""
import asyncio
import logging
import time
from typing import Optional, Callable, Awaitable, List

from markova.core.domain.errors import MarkovaError
from markova.core.domain.jobs import GenerationJob, JobStatus, STATUS_LABELS
from markova.core.ports.outbound import VideoGenerationPort

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[GenerationJob], Awaitable[None]]


class PollHandle:
    """Cancellation token for one polling loop"""

    def __init__(self, job: GenerationJob):
        self.job = job
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """Stop scheduling ticks; results still in flight are discarded"""
        if self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Video polling cancelled", extra={"job_id": self.job.id, "ticks": self.job.ticks})

    def add_done_callback(self, callback: Callable[["PollHandle"], None]) -> None:
        if self._task is None:
            callback(self)
        else:
            self._task.add_done_callback(lambda _task: callback(self))

    async def wait(self) -> GenerationJob:
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.job


class JobPoller:
    """Drives GenerationJob from pending to done or failed"""

    def __init__(
        self,
        video_service: VideoGenerationPort,
        interval_seconds: float = 10.0,
        timeout_seconds: Optional[float] = None,
        status_labels: List[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.video_service = video_service
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds or None
        self.status_labels = status_labels or STATUS_LABELS
        self._sleep = sleep
        self._clock = clock

    async def poll_once(self, job: GenerationJob, handle: Optional[PollHandle] = None) -> GenerationJob:
        """One status check. Terminal and delivering jobs are returned untouched."""
        if job.status != JobStatus.PENDING or job.awaiting_delivery:
            return job

        try:
            report = await self.video_service.get_video_status(job.remote_id)
        except MarkovaError as e:
            if handle is not None and handle.cancelled:
                return job
            logger.warning("Video status check failed", extra={
                "job_id": job.id,
                "error_type": type(e).__name__,
                "error": e.message
            })
            job.fail(e.message, type(e).__name__)
            return job

        if handle is not None and handle.cancelled:
            return job

        job.apply_report(report)
        logger.debug("Video status polled", extra={
            "job_id": job.id,
            "status": job.status.value,
            "tick": job.ticks
        })
        return job

    def start(self, job: GenerationJob, on_complete: Optional[CompletionCallback] = None) -> PollHandle:
        """Schedule polling on the running event loop"""
        handle = PollHandle(job)
        if job.is_terminal:
            return handle
        handle._task = asyncio.create_task(self._run(job, handle, on_complete))
        return handle

    async def run(self, job: GenerationJob, on_complete: Optional[CompletionCallback] = None) -> GenerationJob:
        return await self.start(job, on_complete).wait()

    async def _run(self, job: GenerationJob, handle: PollHandle, on_complete: Optional[CompletionCallback]) -> GenerationJob:
        started = self._clock()
        try:
            while not job.is_terminal and not job.awaiting_delivery and not handle.cancelled:
                job.advance_label(self.status_labels)
                await self._sleep(self.interval_seconds)
                if handle.cancelled:
                    break
                if self.timeout_seconds and self._clock() - started >= self.timeout_seconds:
                    job.fail(
                        f"Video generation did not finish within {self.timeout_seconds:g} seconds",
                        "PollTimeoutError"
                    )
                    break
                await self.poll_once(job, handle)

            if job.awaiting_delivery and not handle.cancelled:
                await self._deliver(job, on_complete)
        except Exception as e:
            logger.exception("Video polling loop crashed", extra={"job_id": job.id})
            job.fail(str(e) or "Video polling failed", type(e).__name__)

        logger.info("Video polling finished", extra={
            "job_id": job.id,
            "status": job.status.value,
            "ticks": job.ticks,
            "cancelled": handle.cancelled
        })
        return job

    @staticmethod
    async def _deliver(job: GenerationJob, on_complete: Optional[CompletionCallback]) -> None:
        # Without a callback the remote URI is handed out as is
        if on_complete is None:
            job.complete(job.video_uri)
            return
        await on_complete(job)
        if job.awaiting_delivery:
            job.fail("Video delivery did not produce a playable link", "NoOutputError")
