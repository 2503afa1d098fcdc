import logging

from markova.core.domain.entities import CampaignPost, ImageArtifact
from markova.core.domain.errors import NotFoundError, PermissionDeniedError
from markova.core.domain.requests import ImageRequest, AspectRatio
from markova.core.ports.inbound import ImageGenerationUseCasePort
from markova.core.ports.outbound import ImageGenerationPort, RepositoryPort, CampaignRepositoryPort
from markova.core.use_cases.result_materializer import ResultMaterializer

logger = logging.getLogger(__name__)


class ImageGenerationUseCase(ImageGenerationUseCasePort):
    """Use case for standalone images and post image regeneration"""

    def __init__(
        self,
        image_service: ImageGenerationPort,
        materializer: ResultMaterializer,
        brand_repository: RepositoryPort,
        campaign_repository: CampaignRepositoryPort
    ):
        self.image_service = image_service
        self.materializer = materializer
        self.brand_repository = brand_repository
        self.campaign_repository = campaign_repository

    async def generate_image(self, request: ImageRequest) -> ImageArtifact:
        request.validate()
        logger.info("Generating image", extra={
            "aspect_ratio": request.aspect_ratio.value,
            "has_brand": request.brand is not None,
            "reference_images": len(request.reference_images)
        })
        data, mime_type = await self.image_service.generate_image(request)
        return self.materializer.image_artifact(data, mime_type)

    async def regenerate_post_image(self, user_id: str, campaign_id: str, post_id: str) -> CampaignPost:
        """Regenerate one stored post's image from its design notes"""
        campaign = self.campaign_repository.get_by_id(campaign_id)
        if campaign is None:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        if campaign.user_id != user_id:
            raise PermissionDeniedError("Campaign belongs to another user")

        post = campaign.find_post(post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found in campaign {campaign_id}")

        brand = self.brand_repository.get_by_id(campaign.brand_id)
        prefs = campaign.visual_prefs
        prompt = post.design_notes
        if prefs is not None:
            prompt = f"{prompt} Art style: {prefs.art_style}. Visual effect: {prefs.visual_effect}."

        artifact = await self.generate_image(ImageRequest(
            prompt=prompt,
            aspect_ratio=AspectRatio.SQUARE,
            brand=brand
        ))
        post.image_url = artifact.url
        self.campaign_repository.update_post(campaign.id, post)

        logger.info("Post image regenerated", extra={
            "campaign_id": campaign.id,
            "post_id": post.id,
            "post_number": post.post_number
        })
        return post
