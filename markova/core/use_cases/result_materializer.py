import base64
import logging
from markova.core.domain.entities import ImageArtifact, VideoArtifact
from markova.core.domain.errors import NoOutputError
from markova.core.domain.jobs import GenerationJob
from markova.core.ports.outbound import VideoDeliveryPort, VideoGenerationPort, MediaStorePort, URLGeneratorPort

logger = logging.getLogger(__name__)

REHOST = "rehost"
PASSTHROUGH = "passthrough"


class RehostVideoDelivery(VideoDeliveryPort):
    """Fetch with the server-held credential and serve the file ourselves"""

    def __init__(self, video_service: VideoGenerationPort, media_store: MediaStorePort,
                 url_generator: URLGeneratorPort, host: str):
        self.video_service = video_service
        self.media_store = media_store
        self.url_generator = url_generator
        self.host = host

    async def deliver(self, video_uri: str) -> VideoArtifact:
        content = await self.video_service.download_video(video_uri)
        if not content:
            raise NoOutputError("Video download returned no content")
        filename = self.media_store.save(content, suffix=".mp4")
        logger.info("Video rehosted", extra={
            "video_filename": filename,
            "content_size_mb": round(len(content) / 1024 / 1024, 2)
        })
        return VideoArtifact(
            url=self.url_generator.generate_video_url(filename, self.host),
            delivery=REHOST,
            source_uri=video_uri,
            filename=filename
        )


class PassthroughVideoDelivery(VideoDeliveryPort):
    """Hand the signed URI straight to the client"""

    async def deliver(self, video_uri: str) -> VideoArtifact:
        return VideoArtifact(url=video_uri, delivery=PASSTHROUGH, source_uri=video_uri)


class ResultMaterializer:
    """Turns raw generation output into displayable references"""

    def __init__(self, video_delivery: VideoDeliveryPort):
        self.video_delivery = video_delivery

    @staticmethod
    def image_artifact(data: bytes, mime_type: str) -> ImageArtifact:
        if not data:
            raise NoOutputError("No image generated")
        mime_type = mime_type or "image/png"
        encoded = base64.b64encode(data).decode("ascii")
        return ImageArtifact(url=f"data:{mime_type};base64,{encoded}", mime_type=mime_type)

    async def materialize_video(self, job: GenerationJob) -> VideoArtifact:
        """Deliver a finished job's video and complete the job with its URL"""
        if not job.awaiting_delivery:
            raise NoOutputError("Video generation completed but no link was provided.")
        artifact = await self.video_delivery.deliver(job.video_uri)
        job.complete(artifact.url)
        return artifact
