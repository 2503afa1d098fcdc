from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Tuple
from markova.core.domain.entities import BrandKit, Campaign, CampaignPost, VideoArtifact
from markova.core.domain.jobs import VideoStatusReport
from markova.core.domain.requests import CampaignRequest, ImageRequest, VideoPayload

class CampaignCopyPort(ABC):
    """Port for campaign copy planning"""

    @abstractmethod
    async def plan_campaign(self, request: CampaignRequest) -> Dict[str, Any]:
        """Return the raw structured response ({"posts": [...]})"""
        pass

class ImageGenerationPort(ABC):
    """Port for image generation"""

    @abstractmethod
    async def generate_image(self, request: ImageRequest) -> Tuple[bytes, str]:
        """Generate an image and return (bytes, mime type)"""
        pass

class VideoGenerationPort(ABC):
    """Port for long-running video generation"""

    @abstractmethod
    async def start_video(self, payload: VideoPayload) -> str:
        """Submit a video job and return the remote job handle"""
        pass

    @abstractmethod
    async def get_video_status(self, remote_id: str) -> VideoStatusReport:
        """Fetch the current status of a remote job"""
        pass

    @abstractmethod
    async def download_video(self, uri: str) -> bytes:
        """Download produced video content"""
        pass

class StrategyPort(ABC):
    """Port for strategic plan generation"""

    @abstractmethod
    async def generate_strategy(self, brand: BrandKit, goals: str, target_region: str) -> Dict[str, Any]:
        pass

class VideoDeliveryPort(ABC):
    """Turns a finished job's remote URI into something the client can play"""

    @abstractmethod
    async def deliver(self, video_uri: str) -> VideoArtifact:
        pass

class CredentialProviderPort(ABC):
    """Supplies the remote-service credential to the generation adapters"""

    @abstractmethod
    def get_api_key(self) -> Optional[str]:
        pass

    @abstractmethod
    def refresh(self) -> Optional[str]:
        """Obtain a new credential after the old one was rejected"""
        pass

    def has_valid_key(self) -> bool:
        key = self.get_api_key()
        return bool(key) and len(key) > 10

class MediaStorePort(ABC):
    """Local storage for rehosted media"""

    @abstractmethod
    def save(self, content: bytes, suffix: str = ".mp4") -> str:
        """Store content and return its filename"""
        pass

    @abstractmethod
    def read(self, filename: str) -> bytes:
        pass

class URLGeneratorPort(ABC):
    """Port for generating URLs"""

    @abstractmethod
    def generate_video_url(self, filename: str, host: str) -> str:
        """Generate external video URL"""
        pass

class RepositoryPort(ABC):
    """Persistence gateway for one entity type"""

    @abstractmethod
    def save(self, entity) -> str:
        pass

    @abstractmethod
    def update(self, entity) -> None:
        pass

    @abstractmethod
    def get_by_id(self, entity_id: str):
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> None:
        pass

    @abstractmethod
    def list(self, **filters) -> List[Any]:
        pass

class CampaignRepositoryPort(RepositoryPort):
    """Campaign persistence including owned post/story/reel rows"""

    @abstractmethod
    def get_by_id(self, entity_id: str) -> Optional[Campaign]:
        pass

    @abstractmethod
    def update_post(self, campaign_id: str, post: CampaignPost) -> None:
        pass
