import logging
from dataclasses import asdict
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from markova.core.domain.entities import (
    BrandKit, Campaign, CampaignPost, CampaignReel, CampaignStory, Plan, PlanFeatures,
    StrategicPlan, User, VisualPrefs
)
from markova.core.domain.errors import NotFoundError, ValidationError
from markova.core.ports.outbound import RepositoryPort, CampaignRepositoryPort
from markova.adapters.persistence.db import Database
from markova.adapters.persistence.models import (
    BrandKitRow, CampaignPostRow, CampaignReelRow, CampaignRow, CampaignStoryRow, PlanRow,
    StrategicPlanRow, UserRow
)

logger = logging.getLogger(__name__)


class SqlRepository(RepositoryPort):
    """
    Generic repository: one entity dataclass mapped onto one table.
    Each call runs in its own short-lived session.
    """

    entity_class: Any = None
    row_class: Any = None
    newest_first: bool = True

    def __init__(self, database: Database):
        self.database = database

    def to_row(self, entity):
        return self.row_class(**asdict(entity))

    def to_entity(self, row):
        columns = [column.key for column in self.row_class.__table__.columns]
        return self.entity_class(**{name: getattr(row, name) for name in columns})

    def order_by(self):
        column = self.row_class.created_at
        return column.desc() if self.newest_first else column.asc()

    def _conflict(self, error: IntegrityError) -> ValidationError:
        logger.warning("Record rejected by constraint", extra={
            "table": self.row_class.__tablename__,
            "error": str(error.orig)
        })
        return ValidationError(f"{self.entity_class.__name__} conflicts with an existing record")

    def save(self, entity) -> str:
        try:
            with self.database.session_scope() as session:
                session.add(self.to_row(entity))
        except IntegrityError as e:
            raise self._conflict(e) from e
        logger.debug("Record saved", extra={"table": self.row_class.__tablename__, "record_id": entity.id})
        return entity.id

    def update(self, entity) -> None:
        try:
            with self.database.session_scope() as session:
                if session.get(self.row_class, entity.id) is None:
                    raise NotFoundError(f"{self.entity_class.__name__} {entity.id} not found")
                session.merge(self.to_row(entity))
        except IntegrityError as e:
            raise self._conflict(e) from e

    def get_by_id(self, entity_id: str):
        with self.database.session_scope() as session:
            row = session.get(self.row_class, entity_id)
            return self.to_entity(row) if row is not None else None

    def delete(self, entity_id: str) -> None:
        with self.database.session_scope() as session:
            row = session.get(self.row_class, entity_id)
            if row is not None:
                session.delete(row)

    def list(self, **filters) -> List[Any]:
        stmt = select(self.row_class)
        for name, value in filters.items():
            column = getattr(self.row_class, name, None)
            if column is None:
                raise ValueError(f"Unknown filter field: {name}")
            stmt = stmt.where(column == value)
        stmt = stmt.order_by(self.order_by())
        with self.database.session_scope() as session:
            return [self.to_entity(row) for row in session.scalars(stmt).all()]


class BrandKitRepository(SqlRepository):
    entity_class = BrandKit
    row_class = BrandKitRow


class UserRepository(SqlRepository):
    entity_class = User
    row_class = UserRow


class StrategicPlanRepository(SqlRepository):
    entity_class = StrategicPlan
    row_class = StrategicPlanRow


class PlanRepository(SqlRepository):
    entity_class = Plan
    row_class = PlanRow

    def order_by(self):
        return PlanRow.price_monthly.asc()

    def to_entity(self, row: PlanRow) -> Plan:
        return Plan(
            id=row.id,
            name=row.name,
            price_monthly=row.price_monthly,
            price_yearly=row.price_yearly,
            is_active=row.is_active,
            features=PlanFeatures(**(row.features or {})),
            created_at=row.created_at
        )


class CampaignRepository(SqlRepository, CampaignRepositoryPort):
    """Campaigns with their post, story and reel rows"""

    entity_class = Campaign
    row_class = CampaignRow

    def to_row(self, campaign: Campaign) -> CampaignRow:
        return CampaignRow(
            id=campaign.id,
            user_id=campaign.user_id,
            brand_id=campaign.brand_id,
            title=campaign.title,
            objective=campaign.objective,
            audience=campaign.audience,
            target_market=campaign.target_market,
            content_dialect=campaign.content_dialect,
            language=campaign.language,
            status=campaign.status,
            visual_prefs=asdict(campaign.visual_prefs) if campaign.visual_prefs else None,
            created_at=campaign.created_at,
            posts=[CampaignPostRow(campaign_id=campaign.id, **asdict(post)) for post in campaign.posts],
            stories=[CampaignStoryRow(campaign_id=campaign.id, **asdict(story)) for story in campaign.stories],
            reels=[CampaignReelRow(campaign_id=campaign.id, **asdict(reel)) for reel in campaign.reels]
        )

    def to_entity(self, row: CampaignRow) -> Campaign:
        return Campaign(
            id=row.id,
            user_id=row.user_id,
            brand_id=row.brand_id,
            title=row.title,
            objective=row.objective,
            audience=row.audience,
            target_market=row.target_market,
            content_dialect=row.content_dialect,
            language=row.language,
            status=row.status,
            visual_prefs=VisualPrefs(**row.visual_prefs) if row.visual_prefs else None,
            created_at=row.created_at,
            posts=[self._post_entity(post) for post in row.posts],
            stories=[
                CampaignStory(id=s.id, story_number=s.story_number, content=s.content,
                              interactive_element=s.interactive_element)
                for s in row.stories
            ],
            reels=[
                CampaignReel(id=r.id, reel_number=r.reel_number, hook=r.hook, script=r.script, cta=r.cta)
                for r in row.reels
            ]
        )

    @staticmethod
    def _post_entity(row: CampaignPostRow) -> CampaignPost:
        return CampaignPost(
            id=row.id,
            post_number=row.post_number,
            title=row.title,
            caption_ar=row.caption_ar,
            caption_en=row.caption_en,
            hashtags_ar=row.hashtags_ar,
            hashtags_en=row.hashtags_en,
            cta=row.cta,
            design_notes=row.design_notes,
            image_url=row.image_url
        )

    def get_by_id(self, entity_id: str) -> Optional[Campaign]:
        return super().get_by_id(entity_id)

    def update_post(self, campaign_id: str, post: CampaignPost) -> None:
        with self.database.session_scope() as session:
            row = session.get(CampaignPostRow, post.id)
            if row is None or row.campaign_id != campaign_id:
                raise NotFoundError(f"Post {post.id} not found in campaign {campaign_id}")
            for name, value in asdict(post).items():
                if name != "id":
                    setattr(row, name, value)
        logger.debug("Campaign post updated", extra={"campaign_id": campaign_id, "post_id": post.id})
