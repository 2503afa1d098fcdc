from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from markova.core.domain.entities import Campaign, CampaignPost, ImageArtifact, StrategicPlan
from markova.core.domain.jobs import GenerationJob
from markova.core.domain.requests import CampaignRequest, ImageRequest, VideoRequest
from markova.core.domain.session import Session

class CampaignGenerationUseCasePort(ABC):
    """Port for campaign generation use case"""

    @abstractmethod
    async def plan_posts(self, request: CampaignRequest) -> List[Dict[str, Any]]:
        """Plan campaign copy and validate it against the request schema"""
        pass

    @abstractmethod
    async def generate_campaign(self, user_id: str, brand_id: str, request: CampaignRequest) -> Campaign:
        """Plan, illustrate and persist a complete campaign"""
        pass

class ImageGenerationUseCasePort(ABC):
    """Port for image generation use case"""

    @abstractmethod
    async def generate_image(self, request: ImageRequest) -> ImageArtifact:
        pass

    @abstractmethod
    async def regenerate_post_image(self, user_id: str, campaign_id: str, post_id: str) -> CampaignPost:
        pass

class VideoGenerationUseCasePort(ABC):
    """Port for video generation use case"""

    @abstractmethod
    async def start_video(self, request: VideoRequest, owner_id: Optional[str] = None) -> GenerationJob:
        pass

    @abstractmethod
    def get_job(self, job_id: str, session: Optional[Session] = None) -> GenerationJob:
        """Look up a job; with a session, only its owner or an admin may see it"""
        pass

    @abstractmethod
    def cancel_job(self, job_id: str, session: Optional[Session] = None) -> GenerationJob:
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass

class StrategyUseCasePort(ABC):
    """Port for strategic planning use case"""

    @abstractmethod
    async def generate_plan(self, user_id: str, brand_id: str, goals: str, target_region: str) -> StrategicPlan:
        pass

class VideoDownloadUseCasePort(ABC):
    """Port for video download use case"""

    @abstractmethod
    async def download_video(self, filename: str) -> bytes:
        """Download video by filename"""
        pass
