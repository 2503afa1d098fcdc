import logging
from markova.core.domain.errors import NotFoundError
from markova.core.ports.inbound import VideoDownloadUseCasePort
from markova.core.ports.outbound import MediaStorePort

logger = logging.getLogger(__name__)

class VideoDownloadUseCase(VideoDownloadUseCasePort):
    """Use case for serving rehosted videos"""

    def __init__(self, media_store: MediaStorePort):
        self.media_store = media_store

    async def download_video(self, filename: str) -> bytes:
        """Read a rehosted video by filename"""
        logger.info("Downloading video", extra={"video_filename": filename})

        try:
            video_content = self.media_store.read(filename)
        except FileNotFoundError as e:
            logger.warning("Video not found", extra={
                "video_filename": filename,
                "error": str(e)
            })
            raise NotFoundError(f"Video {filename} not found")

        logger.info("Video download successful", extra={
            "video_filename": filename,
            "content_size_mb": round(len(video_content) / 1024 / 1024, 2)
        })
        return video_content
