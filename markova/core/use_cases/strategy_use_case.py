import logging

from markova.core.domain.entities import StrategicPlan
from markova.core.domain.errors import IncompleteOutputError, ValidationError
from markova.core.ports.inbound import StrategyUseCasePort
from markova.core.ports.outbound import StrategyPort, RepositoryPort
from markova.core.use_cases.campaign_generation_use_case import load_owned_brand

logger = logging.getLogger(__name__)

STRATEGY_FIELDS = ("swot", "competitors", "audience_personas", "roadmap")


class StrategyUseCase(StrategyUseCasePort):
    """Use case for 12-month strategic plans"""

    def __init__(self, strategy_service: StrategyPort, brand_repository: RepositoryPort, plan_repository: RepositoryPort):
        self.strategy_service = strategy_service
        self.brand_repository = brand_repository
        self.plan_repository = plan_repository

    async def generate_plan(self, user_id: str, brand_id: str, goals: str, target_region: str) -> StrategicPlan:
        if not (goals or "").strip():
            raise ValidationError("Business goals are required", field="goals")
        brand = load_owned_brand(self.brand_repository, user_id, brand_id)

        logger.info("Generating strategic plan", extra={
            "brand": brand.name,
            "target_region": target_region
        })

        result = await self.strategy_service.generate_strategy(brand, goals.strip(), target_region or "Global")
        missing = [name for name in STRATEGY_FIELDS if name not in result]
        if missing:
            raise IncompleteOutputError(
                f"Strategy response is missing required fields: {', '.join(missing)}",
                missing_fields=missing
            )

        plan = StrategicPlan(
            user_id=user_id,
            brand_id=brand.id,
            title=f"{brand.name} 12-Month Strategy",
            swot=result["swot"],
            competitors=result["competitors"],
            audience_personas=result["audience_personas"],
            roadmap=result["roadmap"]
        )
        self.plan_repository.save(plan)
        logger.info("Strategic plan stored", extra={"plan_id": plan.id})
        return plan
