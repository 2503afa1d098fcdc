from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from markova.adapters.persistence.db import Base


class PlanRow(Base):
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    price_monthly: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    price_yearly: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    features: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    plan_id: Mapped[Optional[str]] = mapped_column(ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    subscription_status: Mapped[str] = mapped_column(String(40), nullable=False, default="active")
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)


class BrandKitRow(Base):
    __tablename__ = "brand_kits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    primary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    secondary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    font_family: Mapped[str] = mapped_column(String(120), nullable=False)
    tone_of_voice: Mapped[str] = mapped_column(String(200), nullable=False)
    industry: Mapped[str] = mapped_column(String(200), nullable=False)
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="both")
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    additional_colors: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)


class CampaignRow(Base):
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    brand_id: Mapped[str] = mapped_column(ForeignKey("brand_kits.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    objective: Mapped[str] = mapped_column(Text, nullable=False, default="")
    audience: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_market: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    content_dialect: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="both")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    visual_prefs: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)

    posts: Mapped[List["CampaignPostRow"]] = relationship(
        back_populates="campaign", cascade="all, delete-orphan", order_by="CampaignPostRow.post_number"
    )
    stories: Mapped[List["CampaignStoryRow"]] = relationship(
        cascade="all, delete-orphan", order_by="CampaignStoryRow.story_number"
    )
    reels: Mapped[List["CampaignReelRow"]] = relationship(
        cascade="all, delete-orphan", order_by="CampaignReelRow.reel_number"
    )


class CampaignPostRow(Base):
    __tablename__ = "campaign_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    post_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    caption_ar: Mapped[str] = mapped_column(Text, nullable=False)
    caption_en: Mapped[str] = mapped_column(Text, nullable=False)
    hashtags_ar: Mapped[str] = mapped_column(Text, nullable=False)
    hashtags_en: Mapped[str] = mapped_column(Text, nullable=False)
    cta: Mapped[str] = mapped_column(Text, nullable=False)
    design_notes: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    campaign: Mapped[CampaignRow] = relationship(back_populates="posts")


class CampaignStoryRow(Base):
    __tablename__ = "campaign_stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    story_number: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    interactive_element: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CampaignReelRow(Base):
    __tablename__ = "campaign_reels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    reel_number: Mapped[int] = mapped_column(Integer, nullable=False)
    hook: Mapped[str] = mapped_column(Text, nullable=False)
    script: Mapped[str] = mapped_column(Text, nullable=False)
    cta: Mapped[str] = mapped_column(Text, nullable=False, default="")


class StrategicPlanRow(Base):
    __tablename__ = "strategic_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    brand_id: Mapped[str] = mapped_column(ForeignKey("brand_kits.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    swot: Mapped[Any] = mapped_column(JSON, nullable=False)
    competitors: Mapped[Any] = mapped_column(JSON, nullable=False)
    audience_personas: Mapped[Any] = mapped_column(JSON, nullable=False)
    roadmap: Mapped[Any] = mapped_column(JSON, nullable=False)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
