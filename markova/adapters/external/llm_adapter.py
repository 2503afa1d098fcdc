import logging
from typing import Dict, Any, List

from google.genai import types

from markova.core.domain.entities import BrandKit
from markova.core.domain.requests import CampaignRequest, ReferenceImage
from markova.core.domain.typography import text_inclusion_instruction
from markova.core.ports.outbound import CampaignCopyPort, StrategyPort
from markova.adapters.external.genai_client import GenAIClientProvider
from markova.infrastructure.prompts import PromptConfig
from markova.json_repair_engine import parse_model_json
from markova.logging_config import TimingContext, log_external_api_call

logger = logging.getLogger(__name__)


def image_parts(images: List[ReferenceImage]) -> List[types.Part]:
    """One inline binary part per reference image"""
    return [types.Part.from_bytes(data=image.data, mime_type=image.mime_type) for image in images]


class CampaignCopyAdapter(CampaignCopyPort):
    """Plans campaign copy with a Gemini text model"""

    def __init__(self, client_provider: GenAIClientProvider, model: str = "gemini-3-pro-preview",
                 thinking_budget: int = 4096):
        self.client_provider = client_provider
        self.model = model
        self.thinking_budget = thinking_budget

    async def plan_campaign(self, request: CampaignRequest) -> Dict[str, Any]:
        """Generate the post list as schema-constrained JSON"""
        request.validate()

        parts = image_parts(request.product_images)
        parts.append(types.Part.from_text(text=self._build_prompt(request)))

        config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
            response_mime_type="application/json",
            response_schema=request.schema.response_schema()
        )

        client = self.client_provider.get_client()
        with TimingContext("campaign_copy_generation", logger, {"model": self.model}) as timer:
            with self.client_provider.translate_errors("plan_campaign"):
                response = await client.aio.models.generate_content(
                    model=self.model,
                    contents=[types.Content(role="user", parts=parts)],
                    config=config
                )
        log_external_api_call(logger, "gemini", "generate_content", model=self.model,
                              response_status=200, duration_ms=round(timer.duration_ms, 2))

        raw_response = (response.text or "").strip()
        logger.debug("Raw campaign response received", extra={
            "response_length": len(raw_response),
            "response_preview": raw_response[:300] + "..." if len(raw_response) > 300 else raw_response
        })
        return parse_model_json(raw_response, required_keys=("posts",))

    def _build_prompt(self, request: CampaignRequest) -> str:
        prefs = request.visual_prefs
        return PromptConfig.format_prompt(
            "campaign",
            post_count=request.schema.post_count,
            title=request.title,
            objective=request.objective,
            audience=request.audience,
            target_market=request.target_market,
            content_dialect=request.content_dialect,
            language=request.language,
            brand_summary=request.brand.style_summary(),
            art_style=prefs.art_style,
            visual_effect=prefs.visual_effect,
            text_instruction=text_inclusion_instruction(prefs.custom_text)
        )


class StrategyAdapter(StrategyPort):
    """Generates 12-month strategic plans"""

    def __init__(self, client_provider: GenAIClientProvider, model: str = "gemini-3-pro-preview",
                 thinking_budget: int = 4000):
        self.client_provider = client_provider
        self.model = model
        self.thinking_budget = thinking_budget

    async def generate_strategy(self, brand: BrandKit, goals: str, target_region: str) -> Dict[str, Any]:
        prompt = PromptConfig.format_prompt(
            "strategy",
            brand_name=brand.name,
            industry=brand.industry,
            goals=goals,
            target_region=target_region
        )

        client = self.client_provider.get_client()
        with TimingContext("strategy_generation", logger, {"model": self.model}):
            with self.client_provider.translate_errors("generate_strategy"):
                response = await client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
                        response_mime_type="application/json"
                    )
                )

        return parse_model_json((response.text or "").strip())
