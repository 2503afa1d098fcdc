import aiohttp
import logging
from typing import Optional

from google.genai import types

from markova.core.domain.errors import AuthExpiredError, NoOutputError, RemoteServiceError
from markova.core.domain.jobs import VideoStatusReport
from markova.core.domain.requests import VideoPayload, ReferenceImage
from markova.core.ports.outbound import VideoGenerationPort
from markova.adapters.external.genai_client import GenAIClientProvider, ENTITY_NOT_FOUND
from markova.logging_config import TimingContext, log_external_api_call

logger = logging.getLogger(__name__)


def _sdk_image(image: Optional[ReferenceImage]) -> Optional[types.Image]:
    if image is None:
        return None
    return types.Image(image_bytes=image.data, mime_type=image.mime_type)


def build_generate_videos_kwargs(payload: VideoPayload) -> dict:
    """Keyword arguments for models.generate_videos, one shape per mode"""
    config = types.GenerateVideosConfig(
        number_of_videos=payload.number_of_videos,
        resolution=payload.resolution,
        aspect_ratio=payload.aspect_ratio
    )
    if payload.last_frame is not None:
        config.last_frame = _sdk_image(payload.last_frame)
    if payload.reference_images:
        config.reference_images = [
            types.VideoGenerationReferenceImage(
                image=_sdk_image(image),
                reference_type=types.VideoGenerationReferenceType.ASSET
            )
            for image in payload.reference_images
        ]

    kwargs = {"model": payload.model, "prompt": payload.prompt, "config": config}
    if payload.image is not None:
        kwargs["image"] = _sdk_image(payload.image)
    return kwargs


class VideoGenerationAdapter(VideoGenerationPort):
    """Veo video generation through long-running operations"""

    def __init__(self, client_provider: GenAIClientProvider, download_timeout: int = 300):
        self.client_provider = client_provider
        self.download_timeout = download_timeout

    async def start_video(self, payload: VideoPayload) -> str:
        kwargs = build_generate_videos_kwargs(payload)
        client = self.client_provider.get_client()

        with TimingContext("video_generation_start", logger, {
            "model": payload.model,
            "mode": payload.mode,
            "resolution": payload.resolution,
            "aspect_ratio": payload.aspect_ratio
        }):
            with self.client_provider.translate_errors("start_video"):
                operation = await client.aio.models.generate_videos(**kwargs)

        if not operation or not operation.name:
            raise NoOutputError("Video service did not return an operation handle")
        return operation.name

    async def get_video_status(self, remote_id: str) -> VideoStatusReport:
        client = self.client_provider.get_client()
        with self.client_provider.translate_errors("get_video_status", during_poll=True):
            operation = await client.aio.operations.get(types.GenerateVideosOperation(name=remote_id))

        if operation.error:
            message = operation.error.get("message") if isinstance(operation.error, dict) else None
            message = message or str(operation.error)
            if ENTITY_NOT_FOUND in message:
                self.client_provider.credential_rejected()
                raise AuthExpiredError(message)
            return VideoStatusReport(done=True, error=message)

        if not operation.done:
            return VideoStatusReport(done=False)

        video_uri = None
        response = operation.response or operation.result
        if response and response.generated_videos:
            video = response.generated_videos[0].video
            video_uri = video.uri if video else None
        return VideoStatusReport(done=True, video_uri=video_uri)

    async def download_video(self, uri: str) -> bytes:
        """Fetch produced video bytes with the server-held key"""
        api_key = self.client_provider.api_key

        with TimingContext("video_download", logger, {"source": "veo"}) as timer:
            try:
                async with aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.download_timeout)
                ) as session:
                    async with session.get(uri, params={"key": api_key}) as response:
                        if response.status in (401, 403):
                            self.client_provider.credential_rejected()
                            raise AuthExpiredError(f"Video download rejected with status {response.status}")
                        if response.status != 200:
                            raise RemoteServiceError(
                                f"Video download failed: {response.status} {await response.text()}",
                                remote_status=response.status
                            )
                        content = await response.read()
            except aiohttp.ClientError as e:
                raise RemoteServiceError(f"Video download failed: {e}")

        log_external_api_call(logger, "veo", "download", method="GET", response_status=200,
                              duration_ms=round(timer.duration_ms, 2))
        return content
