import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from markova.core.domain.errors import MarkovaError, NotFoundError, PermissionDeniedError
from markova.core.domain.jobs import GenerationJob
from markova.core.domain.requests import VideoRequest, build_video_payload
from markova.core.domain.session import Session
from markova.core.ports.inbound import VideoGenerationUseCasePort
from markova.core.ports.outbound import VideoGenerationPort
from markova.core.use_cases.job_poller import JobPoller, PollHandle
from markova.core.use_cases.result_materializer import ResultMaterializer

logger = logging.getLogger(__name__)


class VideoGenerationUseCase(VideoGenerationUseCasePort):
    """
    Starts video jobs and keeps them in a per-process registry.
    Polling runs in the background; finished jobs get a playable URL.
    Jobs that reached done or failed are forgotten once they have been
    finished for longer than the retention period.
    """

    def __init__(
        self,
        video_service: VideoGenerationPort,
        poller: JobPoller,
        materializer: ResultMaterializer,
        model: str,
        reference_model: str,
        retention_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.video_service = video_service
        self.poller = poller
        self.materializer = materializer
        self.model = model
        self.reference_model = reference_model
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._jobs: Dict[str, GenerationJob] = {}
        self._handles: Dict[str, PollHandle] = {}
        self._finished_at: Dict[str, float] = {}

    async def start_video(self, request: VideoRequest, owner_id: Optional[str] = None) -> GenerationJob:
        self._evict_finished()
        payload = build_video_payload(request, self.model, self.reference_model)
        job = GenerationJob(mode=payload.mode, owner_id=owner_id)

        logger.info("Starting video generation", extra={
            "job_id": job.id,
            "mode": payload.mode,
            "model": payload.model,
            "resolution": payload.resolution,
            "aspect_ratio": payload.aspect_ratio
        })

        remote_id = await self.video_service.start_video(payload)
        job.mark_submitted(remote_id)

        self._jobs[job.id] = job
        handle = self.poller.start(job, on_complete=self._deliver)
        self._handles[job.id] = handle
        handle.add_done_callback(self._record_finish)
        return job

    def get_job(self, job_id: str, session: Optional[Session] = None) -> GenerationJob:
        self._evict_finished()
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Video job {job_id} not found")
        if session is not None and job.owner_id and not session.can_access(job.owner_id):
            raise PermissionDeniedError("Video job belongs to another user")
        return job

    def get_handle(self, job_id: str) -> PollHandle:
        self.get_job(job_id)
        return self._handles[job_id]

    def cancel_job(self, job_id: str, session: Optional[Session] = None) -> GenerationJob:
        """Abandon a job: stop polling and forget it"""
        job = self.get_job(job_id, session)
        self._forget(job_id).cancel()
        logger.info("Video job abandoned", extra={"job_id": job_id, "status": job.status.value})
        return job

    @property
    def job_count(self) -> int:
        return len(self._jobs)

    async def shutdown(self) -> None:
        """Cancel every polling loop and wait for the tasks to unwind"""
        running = [handle for handle in self._handles.values() if not handle.done]
        for handle in running:
            handle.cancel()
        await asyncio.gather(*(handle.wait() for handle in running))
        logger.info("Video polling stopped", extra={"cancelled_jobs": len(running)})

    def _forget(self, job_id: str) -> Optional[PollHandle]:
        self._jobs.pop(job_id, None)
        self._finished_at.pop(job_id, None)
        return self._handles.pop(job_id, None)

    def _record_finish(self, handle: PollHandle) -> None:
        if handle.job.id in self._jobs:
            self._finished_at[handle.job.id] = self._clock()

    def _evict_finished(self) -> None:
        now = self._clock()
        expired = [job_id for job_id, finished in self._finished_at.items()
                   if now - finished >= self.retention_seconds]
        for job_id in expired:
            self._forget(job_id)
        if expired:
            logger.debug("Finished video jobs evicted", extra={"count": len(expired)})

    async def _deliver(self, job: GenerationJob) -> None:
        try:
            artifact = await self.materializer.materialize_video(job)
            logger.info("Video ready", extra={
                "job_id": job.id,
                "delivery": artifact.delivery
            })
        except MarkovaError as e:
            logger.error("Video delivery failed", extra={
                "job_id": job.id,
                "error_type": type(e).__name__,
                "error": e.message
            })
            job.fail(e.message, type(e).__name__)
