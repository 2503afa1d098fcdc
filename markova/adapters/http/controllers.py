import logging
import re
from dataclasses import asdict
from typing import Any, Dict, List, Type

from fastapi import Request
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError as PydanticValidationError

from markova.core.domain.entities import VisualPrefs
from markova.core.domain.errors import ValidationError
from markova.core.domain.requests import (
    CampaignRequest, ImageRequest, VideoRequest, ReferenceImage, AspectRatio,
    VideoAspectRatio, VideoResolution, validate_reference_images, DEFAULT_MAX_IMAGE_BYTES
)
from markova.core.ports.inbound import (
    CampaignGenerationUseCasePort, ImageGenerationUseCasePort, VideoGenerationUseCasePort,
    StrategyUseCasePort, VideoDownloadUseCasePort
)
from markova.core.ports.outbound import CredentialProviderPort
from markova.core.use_cases.records_use_case import RecordsUseCase
from markova.adapters.http.models import (
    CampaignRequestModel, ImageRequestModel, VideoRequestModel, StrategyRequestModel,
    BrandKitCreateModel, PlanCreateModel, UserCreateModel, HealthResponseModel,
    ImageResponseModel, VideoJobResponseModel, BrandKitUpdateModel, CampaignUpdateModel,
    PostUpdateModel, PlanUpdateModel, UserUpdateModel
)
from markova.adapters.http.session import session_from_request

logger = logging.getLogger(__name__)

CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


async def read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON", field="body")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body")
    return body


def parse_model(model_class: Type[BaseModel], body: Dict[str, Any]):
    """Validate a body against a pydantic model, reporting the first bad field"""
    try:
        return model_class(**body)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(snake_name(str(part)) for part in first.get("loc", ())) or None
        raise ValidationError(first.get("msg", "Invalid request"), field=field)


def snake_name(name: str) -> str:
    return CAMEL_BOUNDARY.sub("_", name).lower()


def decode_images(values: List[str], field_name: str, max_bytes: int) -> List[ReferenceImage]:
    images = [ReferenceImage.from_data_url(value, field_name) for value in values]
    return validate_reference_images(images, field_name=field_name, max_bytes=max_bytes)


class GenerationController:
    """HTTP controller for campaign, image, video and strategy generation"""

    def __init__(
        self,
        campaign_use_case: CampaignGenerationUseCasePort,
        image_use_case: ImageGenerationUseCasePort,
        video_use_case: VideoGenerationUseCasePort,
        strategy_use_case: StrategyUseCasePort,
        records_use_case: RecordsUseCase,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    ):
        self.campaign_use_case = campaign_use_case
        self.image_use_case = image_use_case
        self.video_use_case = video_use_case
        self.strategy_use_case = strategy_use_case
        self.records_use_case = records_use_case
        self.max_image_bytes = max_image_bytes

    def _campaign_request(self, model: CampaignRequestModel, brand=None) -> CampaignRequest:
        return CampaignRequest(
            title=model.title,
            objective=model.objective,
            audience=model.audience,
            brand=brand,
            target_market=model.target_market,
            content_dialect=model.content_dialect,
            language=model.language,
            visual_prefs=VisualPrefs(**model.visual_prefs.model_dump()),
            product_images=decode_images(model.product_images, "product_images", self.max_image_bytes)
        )

    async def plan_campaign(self, request: Request) -> Dict[str, Any]:
        """Relay: plan and validate campaign copy without storing it"""
        session = session_from_request(request)
        model = parse_model(CampaignRequestModel, await read_json(request))
        brand = self.records_use_case.get_brand_kit(session, model.brand_id) if model.brand_id else None

        logger.info("Campaign plan request received", extra={
            "title": model.title,
            "product_images": len(model.product_images)
        })
        posts = await self.campaign_use_case.plan_posts(self._campaign_request(model, brand))
        return {"posts": posts}

    async def generate_campaign(self, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        model = parse_model(CampaignRequestModel, await read_json(request))

        logger.info("Campaign generation request received", extra={
            "title": model.title,
            "brand_id": model.brand_id,
            "target_market": model.target_market
        })
        campaign = await self.campaign_use_case.generate_campaign(
            session.user_id, model.brand_id, self._campaign_request(model)
        )
        return campaign.to_dict()

    async def generate_image(self, request: Request) -> ImageResponseModel:
        session = session_from_request(request)
        model = parse_model(ImageRequestModel, await read_json(request))
        brand = self.records_use_case.get_brand_kit(session, model.brand_id) if model.brand_id else None

        artifact = await self.image_use_case.generate_image(ImageRequest(
            prompt=model.prompt,
            aspect_ratio=AspectRatio.parse(model.aspect_ratio),
            brand=brand,
            reference_images=decode_images(model.product_images, "product_images", self.max_image_bytes)
        ))
        return ImageResponseModel(**artifact.to_dict())

    async def regenerate_post_image(self, campaign_id: str, post_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        post = await self.image_use_case.regenerate_post_image(session.user_id, campaign_id, post_id)
        return asdict(post)

    async def start_video(self, request: Request) -> VideoJobResponseModel:
        session = session_from_request(request)
        model = parse_model(VideoRequestModel, await read_json(request))

        logger.info("Video generation request received", extra={
            "image_count": len(model.images),
            "aspect_ratio": model.aspect_ratio,
            "resolution": model.resolution
        })
        job = await self.video_use_case.start_video(VideoRequest(
            prompt=model.prompt,
            images=decode_images(model.images, "images", self.max_image_bytes),
            aspect_ratio=VideoAspectRatio(model.aspect_ratio),
            resolution=VideoResolution(model.resolution)
        ), owner_id=session.user_id)
        return VideoJobResponseModel(**job.to_dict())

    async def get_video(self, job_id: str, request: Request) -> VideoJobResponseModel:
        session = session_from_request(request)
        return VideoJobResponseModel(**self.video_use_case.get_job(job_id, session).to_dict())

    async def cancel_video(self, job_id: str, request: Request) -> VideoJobResponseModel:
        session = session_from_request(request)
        return VideoJobResponseModel(**self.video_use_case.cancel_job(job_id, session).to_dict())

    async def generate_strategy(self, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        model = parse_model(StrategyRequestModel, await read_json(request))
        plan = await self.strategy_use_case.generate_plan(
            session.user_id, model.brand_id, model.goals, model.target_region
        )
        return asdict(plan)


class RecordsController:
    """HTTP controller for brand kits, campaigns, plans and users"""

    def __init__(self, records_use_case: RecordsUseCase):
        self.records = records_use_case

    async def list_brand_kits(self, request: Request) -> List[Dict[str, Any]]:
        return [asdict(brand) for brand in self.records.list_brand_kits(session_from_request(request))]

    async def get_brand_kit(self, brand_id: str, request: Request) -> Dict[str, Any]:
        return asdict(self.records.get_brand_kit(session_from_request(request), brand_id))

    async def create_brand_kit(self, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        model = parse_model(BrandKitCreateModel, await read_json(request))
        return asdict(self.records.create_brand_kit(session, model.model_dump()))

    async def update_brand_kit(self, brand_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        changes = parse_model(BrandKitUpdateModel, await read_json(request)).changes()
        return asdict(self.records.update_brand_kit(session, brand_id, changes))

    async def delete_brand_kit(self, brand_id: str, request: Request) -> Response:
        self.records.delete_brand_kit(session_from_request(request), brand_id)
        return Response(status_code=204)

    async def list_campaigns(self, request: Request) -> List[Dict[str, Any]]:
        return [campaign.to_dict() for campaign in self.records.list_campaigns(session_from_request(request))]

    async def get_campaign(self, campaign_id: str, request: Request) -> Dict[str, Any]:
        return self.records.get_campaign(session_from_request(request), campaign_id).to_dict()

    async def update_campaign(self, campaign_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        changes = parse_model(CampaignUpdateModel, await read_json(request)).changes()
        return self.records.update_campaign(session, campaign_id, changes).to_dict()

    async def update_post(self, campaign_id: str, post_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        changes = parse_model(PostUpdateModel, await read_json(request)).changes()
        return asdict(self.records.update_post(session, campaign_id, post_id, changes))

    async def delete_campaign(self, campaign_id: str, request: Request) -> Response:
        self.records.delete_campaign(session_from_request(request), campaign_id)
        return Response(status_code=204)

    async def list_strategic_plans(self, request: Request) -> List[Dict[str, Any]]:
        return [asdict(plan) for plan in self.records.list_strategic_plans(session_from_request(request))]

    async def list_plans(self, request: Request) -> List[Dict[str, Any]]:
        session = session_from_request(request)
        include_inactive = request.query_params.get("include_inactive", "").lower() in ("1", "true", "yes")
        return [asdict(plan) for plan in self.records.list_plans(session, include_inactive)]

    async def create_plan(self, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        model = parse_model(PlanCreateModel, await read_json(request))
        return asdict(self.records.create_plan(session, model.model_dump()))

    async def update_plan(self, plan_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        changes = parse_model(PlanUpdateModel, await read_json(request)).changes()
        return asdict(self.records.update_plan(session, plan_id, changes))

    async def delete_plan(self, plan_id: str, request: Request) -> Response:
        self.records.delete_plan(session_from_request(request), plan_id)
        return Response(status_code=204)

    async def list_users(self, request: Request) -> List[Dict[str, Any]]:
        return [asdict(user) for user in self.records.list_users(session_from_request(request))]

    async def get_user(self, user_id: str, request: Request) -> Dict[str, Any]:
        return asdict(self.records.get_user(session_from_request(request), user_id))

    async def create_user(self, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        model = parse_model(UserCreateModel, await read_json(request))
        return asdict(self.records.create_user(session, model.model_dump()))

    async def update_user(self, user_id: str, request: Request) -> Dict[str, Any]:
        session = session_from_request(request)
        changes = parse_model(UserUpdateModel, await read_json(request)).changes()
        return asdict(self.records.update_user(session, user_id, changes))

    async def delete_user(self, user_id: str, request: Request) -> Response:
        self.records.delete_user(session_from_request(request), user_id)
        return Response(status_code=204)


class SystemController:
    """HTTP controller for health and rehosted media"""

    def __init__(
        self,
        credentials: CredentialProviderPort,
        video_download_use_case: VideoDownloadUseCasePort,
        node: str = "markova-core",
        engine: str = "Gemini 3.0 Pro + Veo 3.1"
    ):
        self.credentials = credentials
        self.video_download_use_case = video_download_use_case
        self.node = node
        self.engine = engine

    async def health_check(self) -> HealthResponseModel:
        """Health check endpoint"""
        status = "online" if self.credentials.has_valid_key() else "unauthorized"
        return HealthResponseModel(status=status, node=self.node, engine=self.engine)

    async def download_video(self, filename: str, request: Request) -> Response:
        """Serve a rehosted video"""
        client_ip = request.client.host if request.client else "unknown"
        logger.info("Video download request", extra={
            "video_filename": filename,
            "client_ip": client_ip
        })

        video_content = await self.video_download_use_case.download_video(filename)
        return Response(
            content=video_content,
            media_type="video/mp4",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Content-Length": str(len(video_content))
            }
        )
