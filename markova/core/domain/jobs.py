from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from markova.core.domain.entities import utc_now, new_id

STATUS_LABELS = [
    "Analyzing reference frames...",
    "Interpolating motion vectors...",
    "Simulating cinematic lighting...",
    "Synthesizing temporal consistency...",
    "Rendering high-fidelity textures...",
]


class JobStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.DONE, JobStatus.FAILED)


@dataclass
class VideoStatusReport:
    """One remote status answer for a video job"""
    done: bool
    video_uri: Optional[str] = None
    error: Optional[str] = None


@dataclass
class GenerationJob:
    """
    One asynchronous video request tracked by its remote handle.

    created -> pending -> {done, failed}. Terminal jobs never change again.
    A finished remote report only records the result URI; the job stays
    pending until the video has been delivered and video_url is set.
    """
    mode: str = "text_only"
    owner_id: Optional[str] = None
    status: JobStatus = JobStatus.CREATED
    remote_id: Optional[str] = None
    video_uri: Optional[str] = None
    video_url: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    status_label: str = "Initializing video node..."
    ticks: int = 0
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def awaiting_delivery(self) -> bool:
        return self.status == JobStatus.PENDING and bool(self.video_uri)

    def mark_submitted(self, remote_id: str) -> None:
        if self.status != JobStatus.CREATED:
            return
        self.remote_id = remote_id
        self.status = JobStatus.PENDING
        self.status_label = "Queuing multimodal request..."
        self.updated_at = utc_now()

    def advance_label(self, labels: List[str] = STATUS_LABELS) -> None:
        if self.is_terminal or not labels:
            return
        self.status_label = labels[self.ticks % len(labels)]
        self.ticks += 1

    def apply_report(self, report: VideoStatusReport) -> None:
        """Apply one status report; no-op once terminal or delivering"""
        if self.status != JobStatus.PENDING or self.awaiting_delivery:
            return
        if report.error:
            self.fail(report.error, "RemoteServiceError")
        elif report.done:
            if report.video_uri:
                self.video_uri = report.video_uri
                self.status_label = "Streaming temporal frames..."
                self.updated_at = utc_now()
            else:
                self.fail("Video generation completed but no link was provided.", "NoOutputError")

    def complete(self, video_url: str) -> None:
        """Playable URL is ready"""
        if not self.awaiting_delivery:
            return
        self.video_url = video_url
        self.status = JobStatus.DONE
        self.status_label = ""
        self.updated_at = utc_now()

    def fail(self, message: str, error_type: str) -> None:
        if self.is_terminal:
            return
        self.status = JobStatus.FAILED
        self.error = message
        self.error_type = error_type
        self.status_label = ""
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "mode": self.mode,
            "status_label": self.status_label,
            "video_url": self.video_url,
            "error": self.error,
            "error_type": self.error_type,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
