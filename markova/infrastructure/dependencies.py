# Dependency injection and composition root
import asyncio
from dataclasses import dataclass
from typing import Optional

from markova.core.ports.outbound import (
    CampaignCopyPort, CredentialProviderPort, ImageGenerationPort, StrategyPort, VideoGenerationPort
)
from markova.core.use_cases.campaign_generation_use_case import CampaignGenerationUseCase
from markova.core.use_cases.image_generation_use_case import ImageGenerationUseCase
from markova.core.use_cases.job_poller import JobPoller
from markova.core.use_cases.records_use_case import RecordsUseCase
from markova.core.use_cases.result_materializer import (
    ResultMaterializer, RehostVideoDelivery, PassthroughVideoDelivery, REHOST, PASSTHROUGH
)
from markova.core.use_cases.strategy_use_case import StrategyUseCase
from markova.core.use_cases.video_download_use_case import VideoDownloadUseCase
from markova.core.use_cases.video_generation_use_case import VideoGenerationUseCase
from markova.adapters.external.credentials import build_credential_provider
from markova.adapters.external.genai_client import GenAIClientProvider
from markova.adapters.external.image_adapter import ImageGenerationAdapter
from markova.adapters.external.llm_adapter import CampaignCopyAdapter, StrategyAdapter
from markova.adapters.external.url_generator_adapter import URLGeneratorAdapter
from markova.adapters.external.video_adapter import VideoGenerationAdapter
from markova.adapters.http.controllers import GenerationController, RecordsController, SystemController
from markova.adapters.persistence.db import Database
from markova.adapters.persistence.repositories import (
    BrandKitRepository, CampaignRepository, PlanRepository, StrategicPlanRepository, UserRepository
)
from markova.adapters.storage.media_store import LocalMediaStore
from markova.infrastructure.config import config as default_config


@dataclass
class Container:
    """Everything the HTTP app needs, wired once per process"""
    database: Database
    credentials: CredentialProviderPort
    video_use_case: VideoGenerationUseCase
    generation_controller: GenerationController
    records_controller: RecordsController
    system_controller: SystemController


def setup_dependencies(
    settings=default_config,
    credentials: Optional[CredentialProviderPort] = None,
    copy_service: Optional[CampaignCopyPort] = None,
    image_service: Optional[ImageGenerationPort] = None,
    video_service: Optional[VideoGenerationPort] = None,
    strategy_service: Optional[StrategyPort] = None,
    sleep=asyncio.sleep
) -> Container:
    """Setup dependency injection; any outbound service can be swapped in"""

    credentials = credentials or build_credential_provider(settings.CREDENTIAL_SOURCE, settings.GEMINI_API_KEY)
    client_provider = GenAIClientProvider(credentials)

    # External adapters (outbound ports)
    copy_service = copy_service or CampaignCopyAdapter(
        client_provider, model=settings.CAMPAIGN_MODEL, thinking_budget=settings.THINKING_BUDGET
    )
    image_service = image_service or ImageGenerationAdapter(client_provider, model=settings.IMAGE_MODEL)
    video_service = video_service or VideoGenerationAdapter(client_provider)
    strategy_service = strategy_service or StrategyAdapter(client_provider, model=settings.STRATEGY_MODEL)

    # Persistence and storage
    database = Database(settings.DATABASE_URL)
    database.create_all()
    brand_repository = BrandKitRepository(database)
    campaign_repository = CampaignRepository(database)
    plan_repository = PlanRepository(database)
    user_repository = UserRepository(database)
    strategy_repository = StrategicPlanRepository(database)
    media_store = LocalMediaStore(settings.MEDIA_DIR, ttl_seconds=settings.MEDIA_TTL_SECONDS)

    if settings.VIDEO_DELIVERY_MODE == REHOST:
        video_delivery = RehostVideoDelivery(video_service, media_store, URLGeneratorAdapter(), settings.DEFAULT_HOST)
    elif settings.VIDEO_DELIVERY_MODE == PASSTHROUGH:
        video_delivery = PassthroughVideoDelivery()
    else:
        raise ValueError(f"Unknown video delivery mode: {settings.VIDEO_DELIVERY_MODE}")
    materializer = ResultMaterializer(video_delivery)

    # Use cases (application layer)
    campaign_use_case = CampaignGenerationUseCase(
        copy_service=copy_service,
        image_service=image_service,
        brand_repository=brand_repository,
        campaign_repository=campaign_repository,
        materializer=materializer,
        inter_post_delay=settings.INTER_POST_DELAY_SECONDS,
        sleep=sleep
    )
    image_use_case = ImageGenerationUseCase(
        image_service=image_service,
        materializer=materializer,
        brand_repository=brand_repository,
        campaign_repository=campaign_repository
    )
    poller = JobPoller(
        video_service,
        interval_seconds=settings.VIDEO_POLL_INTERVAL_SECONDS,
        timeout_seconds=settings.VIDEO_POLL_TIMEOUT_SECONDS,
        sleep=sleep
    )
    video_use_case = VideoGenerationUseCase(
        video_service=video_service,
        poller=poller,
        materializer=materializer,
        model=settings.VIDEO_MODEL,
        reference_model=settings.VIDEO_REFERENCE_MODEL,
        retention_seconds=settings.VIDEO_JOB_RETENTION_SECONDS
    )
    strategy_use_case = StrategyUseCase(strategy_service, brand_repository, strategy_repository)
    records_use_case = RecordsUseCase(
        brand_repository=brand_repository,
        campaign_repository=campaign_repository,
        plan_repository=plan_repository,
        user_repository=user_repository,
        strategy_repository=strategy_repository
    )

    # HTTP controllers (inbound adapters)
    generation_controller = GenerationController(
        campaign_use_case=campaign_use_case,
        image_use_case=image_use_case,
        video_use_case=video_use_case,
        strategy_use_case=strategy_use_case,
        records_use_case=records_use_case,
        max_image_bytes=settings.MAX_REFERENCE_IMAGE_BYTES
    )
    records_controller = RecordsController(records_use_case)
    system_controller = SystemController(
        credentials=credentials,
        video_download_use_case=VideoDownloadUseCase(media_store),
        node=settings.NODE_NAME,
        engine=settings.ENGINE_LABEL
    )

    return Container(
        database=database,
        credentials=credentials,
        video_use_case=video_use_case,
        generation_controller=generation_controller,
        records_controller=records_controller,
        system_controller=system_controller
    )
