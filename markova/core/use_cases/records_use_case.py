"""
Record management for brand kits, campaigns, plans, users and strategic plans.

Every operation takes the caller's Session explicitly. Owned records are only
visible to their owner or an administrator; users and plan writes require the
administrator role.
"""
import logging
from dataclasses import replace
from typing import Dict, Any, List, Iterable, Optional

from markova.core.domain.entities import BrandKit, Campaign, CampaignPost, Plan, PlanFeatures, User, StrategicPlan, UserRole
from markova.core.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from markova.core.domain.requests import ReferenceImage, validate_reference_images
from markova.core.domain.session import Session
from markova.core.ports.outbound import RepositoryPort, CampaignRepositoryPort

logger = logging.getLogger(__name__)

MAX_LOGO_BYTES = 2 * 1024 * 1024

BRAND_FIELDS = (
    "name", "primary_color", "secondary_color", "font_family", "tone_of_voice",
    "industry", "language", "logo_url", "additional_colors"
)
CAMPAIGN_FIELDS = ("title", "objective", "audience", "target_market", "content_dialect", "language", "status")
CAMPAIGN_STATUSES = ("draft", "generated", "published")
POST_FIELDS = ("title", "caption_ar", "caption_en", "hashtags_ar", "hashtags_en", "cta", "design_notes", "image_url")
PLAN_FIELDS = ("name", "price_monthly", "price_yearly", "is_active", "features")
PLAN_FEATURE_FIELDS = ("brands_limit", "campaigns_limit", "exports_limit", "team_limit")
USER_FIELDS = ("name", "email", "role", "plan_id", "subscription_status")
SELF_EDITABLE_USER_FIELDS = ("name", "email")


def _pick(changes: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    allowed = tuple(allowed)
    unknown = [name for name in changes if name not in allowed]
    if unknown:
        raise ValidationError(f"Field cannot be updated: {unknown[0]}", field=unknown[0])
    return dict(changes)


def _check_logo(logo_url: Optional[str]) -> None:
    if logo_url and logo_url.startswith("data:"):
        image = ReferenceImage.from_data_url(logo_url, field_name="logo_url")
        validate_reference_images([image], field_name="logo_url", max_bytes=MAX_LOGO_BYTES)


class RecordsUseCase:
    """CRUD over the persistence gateway with session checks"""

    def __init__(
        self,
        brand_repository: RepositoryPort,
        campaign_repository: CampaignRepositoryPort,
        plan_repository: RepositoryPort,
        user_repository: RepositoryPort,
        strategy_repository: RepositoryPort
    ):
        self.brand_repository = brand_repository
        self.campaign_repository = campaign_repository
        self.plan_repository = plan_repository
        self.user_repository = user_repository
        self.strategy_repository = strategy_repository

    def _owned(self, repository: RepositoryPort, session: Session, entity_id: str, label: str):
        entity = repository.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{label} {entity_id} not found")
        if not session.can_access(entity.user_id):
            raise PermissionDeniedError(f"{label} belongs to another user")
        return entity

    # Brand kits

    def list_brand_kits(self, session: Session) -> List[BrandKit]:
        return self.brand_repository.list(user_id=session.user_id)

    def get_brand_kit(self, session: Session, brand_id: str) -> BrandKit:
        return self._owned(self.brand_repository, session, brand_id, "Brand kit")

    def create_brand_kit(self, session: Session, data: Dict[str, Any]) -> BrandKit:
        fields = _pick(data, BRAND_FIELDS)
        if not (fields.get("name") or "").strip():
            raise ValidationError("Brand name is required", field="name")
        _check_logo(fields.get("logo_url"))
        brand = BrandKit(
            user_id=session.user_id,
            name=fields["name"].strip(),
            primary_color=fields.get("primary_color") or "#000000",
            secondary_color=fields.get("secondary_color") or "#FFFFFF",
            font_family=fields.get("font_family") or "Inter",
            tone_of_voice=fields.get("tone_of_voice") or "Professional",
            industry=fields.get("industry") or "General",
            language=fields.get("language") or "both",
            logo_url=fields.get("logo_url"),
            additional_colors=list(fields.get("additional_colors") or [])
        )
        self.brand_repository.save(brand)
        logger.info("Brand kit created", extra={"brand_id": brand.id, "user_id": session.user_id})
        return brand

    def update_brand_kit(self, session: Session, brand_id: str, changes: Dict[str, Any]) -> BrandKit:
        brand = self.get_brand_kit(session, brand_id)
        fields = _pick(changes, BRAND_FIELDS)
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("Brand name is required", field="name")
        _check_logo(fields.get("logo_url"))
        brand = replace(brand, **fields)
        self.brand_repository.update(brand)
        return brand

    def delete_brand_kit(self, session: Session, brand_id: str) -> None:
        self.get_brand_kit(session, brand_id)
        self.brand_repository.delete(brand_id)
        logger.info("Brand kit deleted", extra={"brand_id": brand_id})

    # Campaigns

    def list_campaigns(self, session: Session) -> List[Campaign]:
        return self.campaign_repository.list(user_id=session.user_id)

    def get_campaign(self, session: Session, campaign_id: str) -> Campaign:
        return self._owned(self.campaign_repository, session, campaign_id, "Campaign")

    def update_campaign(self, session: Session, campaign_id: str, changes: Dict[str, Any]) -> Campaign:
        campaign = self.get_campaign(session, campaign_id)
        fields = _pick(changes, CAMPAIGN_FIELDS)
        if "status" in fields and fields["status"] not in CAMPAIGN_STATUSES:
            raise ValidationError(f"Unknown campaign status: {fields['status']}", field="status")
        campaign = replace(campaign, **fields)
        self.campaign_repository.update(campaign)
        return campaign

    def update_post(self, session: Session, campaign_id: str, post_id: str, changes: Dict[str, Any]) -> CampaignPost:
        campaign = self.get_campaign(session, campaign_id)
        post = campaign.find_post(post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found in campaign {campaign_id}")
        post = replace(post, **_pick(changes, POST_FIELDS))
        self.campaign_repository.update_post(campaign.id, post)
        return post

    def delete_campaign(self, session: Session, campaign_id: str) -> None:
        self.get_campaign(session, campaign_id)
        self.campaign_repository.delete(campaign_id)
        logger.info("Campaign deleted", extra={"campaign_id": campaign_id})

    # Strategic plans

    def list_strategic_plans(self, session: Session) -> List[StrategicPlan]:
        return self.strategy_repository.list(user_id=session.user_id)

    # Subscription plans

    def list_plans(self, session: Session, include_inactive: bool = False) -> List[Plan]:
        if include_inactive and session.is_admin:
            return self.plan_repository.list()
        return self.plan_repository.list(is_active=True)

    def create_plan(self, session: Session, data: Dict[str, Any]) -> Plan:
        session.require_admin()
        fields = _pick(data, PLAN_FIELDS)
        if not (fields.get("name") or "").strip():
            raise ValidationError("Plan name is required", field="name")
        plan = Plan(
            name=fields["name"].strip(),
            price_monthly=float(fields.get("price_monthly") or 0),
            price_yearly=float(fields.get("price_yearly") or 0),
            is_active=bool(fields.get("is_active", True)),
            features=PlanFeatures(**_pick(fields.get("features") or {}, PLAN_FEATURE_FIELDS))
        )
        self.plan_repository.save(plan)
        return plan

    def update_plan(self, session: Session, plan_id: str, changes: Dict[str, Any]) -> Plan:
        session.require_admin()
        plan = self.plan_repository.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        fields = _pick(changes, PLAN_FIELDS)
        if "features" in fields:
            # Limits not named in the update keep their current values
            features = _pick(fields["features"] or {}, PLAN_FEATURE_FIELDS)
            fields["features"] = replace(plan.features, **features)
        plan = replace(plan, **fields)
        self.plan_repository.update(plan)
        return plan

    def delete_plan(self, session: Session, plan_id: str) -> None:
        session.require_admin()
        if self.plan_repository.get_by_id(plan_id) is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        self.plan_repository.delete(plan_id)

    # Users

    def list_users(self, session: Session) -> List[User]:
        session.require_admin()
        return self.user_repository.list()

    def get_user(self, session: Session, user_id: str) -> User:
        if not session.can_access(user_id):
            raise PermissionDeniedError("Cannot view another user's profile")
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def create_user(self, session: Session, data: Dict[str, Any]) -> User:
        session.require_admin()
        fields = _pick(data, USER_FIELDS + ("id",))
        for name in ("name", "email"):
            if not (fields.get(name) or "").strip():
                raise ValidationError(f"User {name} is required", field=name)
        role = fields.get("role") or UserRole.USER.value
        if role not in [member.value for member in UserRole]:
            raise ValidationError(f"Unknown role: {role}", field="role")
        user = User(name=fields["name"].strip(), email=fields["email"].strip(), role=role,
                    plan_id=fields.get("plan_id"),
                    subscription_status=fields.get("subscription_status") or "active")
        if fields.get("id"):
            if self.user_repository.get_by_id(fields["id"]) is not None:
                raise ValidationError(f"User {fields['id']} already exists", field="id")
            user.id = fields["id"]
        self._check_email_free(user.email)
        self.user_repository.save(user)
        return user

    def _check_email_free(self, email: str, user_id: Optional[str] = None) -> None:
        taken = [user for user in self.user_repository.list(email=email) if user.id != user_id]
        if taken:
            raise ValidationError(f"Email already registered: {email}", field="email")

    def update_user(self, session: Session, user_id: str, changes: Dict[str, Any]) -> User:
        user = self.get_user(session, user_id)
        allowed = USER_FIELDS if session.is_admin else SELF_EDITABLE_USER_FIELDS
        fields = _pick(changes, allowed)
        if "role" in fields and fields["role"] not in [member.value for member in UserRole]:
            raise ValidationError(f"Unknown role: {fields['role']}", field="role")
        if "email" in fields:
            if not (fields["email"] or "").strip():
                raise ValidationError("User email is required", field="email")
            fields["email"] = fields["email"].strip()
            self._check_email_free(fields["email"], user.id)
        user = replace(user, **fields)
        self.user_repository.update(user)
        return user

    def delete_user(self, session: Session, user_id: str) -> None:
        session.require_admin()
        if self.user_repository.get_by_id(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        self.user_repository.delete(user_id)
