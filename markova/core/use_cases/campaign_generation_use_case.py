import asyncio
import logging
from typing import Dict, Any, List, Callable, Awaitable

from markova.core.domain.entities import Campaign, CampaignPost, BrandKit
from markova.core.domain.errors import MarkovaError, NotFoundError, PermissionDeniedError, ValidationError
from markova.core.domain.requests import CampaignRequest, ImageRequest, AspectRatio
from markova.core.domain.typography import ensure_typography_directive
from markova.core.ports.inbound import CampaignGenerationUseCasePort
from markova.core.ports.outbound import CampaignCopyPort, ImageGenerationPort, RepositoryPort, CampaignRepositoryPort
from markova.core.use_cases.result_materializer import ResultMaterializer

logger = logging.getLogger(__name__)


def post_image_prompt(post: CampaignPost, request: CampaignRequest) -> str:
    """Image prompt for one post: its design notes plus the campaign's look"""
    prefs = request.visual_prefs
    parts = [post.design_notes, f"Art style: {prefs.art_style}.", f"Visual effect: {prefs.visual_effect}."]
    if prefs.include_character:
        parts.append("Include a human character that fits the target audience.")
    if prefs.added_shapes and prefs.added_shapes != "None":
        parts.append(f"Decorative shapes: {prefs.added_shapes}.")
    if prefs.add_footer_shape:
        parts.append("Leave a clean footer band at the bottom of the frame.")
    return " ".join(parts)


def load_owned_brand(brand_repository: RepositoryPort, user_id: str, brand_id: str) -> BrandKit:
    if not brand_id:
        raise ValidationError("A brand kit must be selected", field="brand_id")
    brand = brand_repository.get_by_id(brand_id)
    if brand is None:
        raise NotFoundError(f"Brand kit {brand_id} not found")
    if brand.user_id != user_id:
        raise PermissionDeniedError("Brand kit belongs to another user")
    return brand


class CampaignGenerationUseCase(CampaignGenerationUseCasePort):
    """Use case for planning, illustrating and storing a campaign"""

    def __init__(
        self,
        copy_service: CampaignCopyPort,
        image_service: ImageGenerationPort,
        brand_repository: RepositoryPort,
        campaign_repository: CampaignRepositoryPort,
        materializer: ResultMaterializer,
        inter_post_delay: float = 0.8,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.copy_service = copy_service
        self.image_service = image_service
        self.brand_repository = brand_repository
        self.campaign_repository = campaign_repository
        self.materializer = materializer
        self.inter_post_delay = inter_post_delay
        self._sleep = sleep

    async def plan_posts(self, request: CampaignRequest) -> List[Dict[str, Any]]:
        """Plan copy for the request and enforce its post schema"""
        request.validate()

        logger.info("Planning campaign copy", extra={
            "title": request.title,
            "brand": request.brand.name,
            "target_market": request.target_market,
            "product_images": len(request.product_images)
        })

        response = await self.copy_service.plan_campaign(request)
        posts = request.schema.validate(response.get("posts") if isinstance(response, dict) else None)

        overlay_text = request.visual_prefs.overlay_text
        for post in posts:
            post["design_notes"] = ensure_typography_directive(post["design_notes"], overlay_text)

        logger.info("Campaign copy planned", extra={"post_count": len(posts)})
        return posts

    async def generate_campaign(self, user_id: str, brand_id: str, request: CampaignRequest) -> Campaign:
        """Generate a complete campaign and persist it"""
        request.brand = load_owned_brand(self.brand_repository, user_id, brand_id)
        planned = await self.plan_posts(request)

        posts = [
            CampaignPost(
                post_number=int(item["post_number"]) if str(item["post_number"]).isdigit() else index + 1,
                title=item["title"],
                caption_ar=item["caption_ar"],
                caption_en=item["caption_en"],
                hashtags_ar=item["hashtags_ar"],
                hashtags_en=item["hashtags_en"],
                cta=item["cta"],
                design_notes=item["design_notes"],
            )
            for index, item in enumerate(planned)
        ]

        await self.illustrate_posts(posts, request)

        campaign = Campaign(
            user_id=user_id,
            brand_id=request.brand.id,
            title=request.title,
            objective=request.objective,
            audience=request.audience,
            target_market=request.target_market,
            content_dialect=request.content_dialect,
            language=request.language,
            status="generated",
            visual_prefs=request.visual_prefs,
            posts=posts
        )
        self.campaign_repository.save(campaign)

        logger.info("Campaign generation completed", extra={
            "campaign_id": campaign.id,
            "posts_with_images": sum(1 for post in posts if post.image_url),
            "post_count": len(posts)
        })
        return campaign

    async def illustrate_posts(self, posts: List[CampaignPost], request: CampaignRequest) -> None:
        """Generate one image per post, strictly one at a time"""
        total = len(posts)
        for index, post in enumerate(posts):
            image_request = ImageRequest(
                prompt=post_image_prompt(post, request),
                aspect_ratio=AspectRatio.SQUARE,
                brand=request.brand,
                reference_images=request.product_images
            )
            try:
                data, mime_type = await self.image_service.generate_image(image_request)
                post.image_url = self.materializer.image_artifact(data, mime_type).url
                logger.info("Post image generated", extra={"post_number": post.post_number})
            except MarkovaError as e:
                logger.warning("Post image generation failed, continuing without image", extra={
                    "post_number": post.post_number,
                    "error_type": type(e).__name__,
                    "error": e.message
                })

            if index < total - 1:
                await self._sleep(self.inter_post_delay)
