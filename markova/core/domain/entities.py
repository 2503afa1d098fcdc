import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass
class PlanFeatures:
    brands_limit: int = 1
    campaigns_limit: int = 10
    exports_limit: int = 10
    team_limit: int = 1


@dataclass
class Plan:
    """Subscription tier"""
    name: str
    price_monthly: float
    price_yearly: float
    is_active: bool = True
    features: PlanFeatures = field(default_factory=PlanFeatures)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)


@dataclass
class User:
    name: str
    email: str
    role: str = UserRole.USER.value
    plan_id: Optional[str] = None
    subscription_status: str = "active"
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)


@dataclass
class BrandKit:
    """Brand identity used as context for generation requests"""
    user_id: str
    name: str
    primary_color: str
    secondary_color: str
    font_family: str
    tone_of_voice: str
    industry: str
    language: str = "both"
    logo_url: Optional[str] = None
    additional_colors: List[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    def style_summary(self) -> str:
        colors = [self.primary_color, self.secondary_color] + list(self.additional_colors)
        return (
            f"Brand: {self.name} ({self.industry}). "
            f"Colors: {', '.join(c for c in colors if c)}. "
            f"Tone: {self.tone_of_voice}."
        )


@dataclass
class VisualPrefs:
    art_style: str = "Realism"
    include_character: bool = False
    custom_text: Optional[str] = None
    visual_effect: str = "Cinematic Studio Lighting"
    added_shapes: str = "None"
    include_logo: bool = True
    add_footer_shape: bool = False

    @property
    def overlay_text(self) -> Optional[str]:
        """Custom text stripped, or None when blank"""
        if self.custom_text and self.custom_text.strip():
            return self.custom_text.strip()
        return None


@dataclass
class CampaignPost:
    post_number: int
    title: str
    caption_ar: str
    caption_en: str
    hashtags_ar: str
    hashtags_en: str
    cta: str
    design_notes: str
    image_url: Optional[str] = None
    id: str = field(default_factory=new_id)


@dataclass
class CampaignStory:
    story_number: int
    content: str
    interactive_element: str
    id: str = field(default_factory=new_id)


@dataclass
class CampaignReel:
    reel_number: int
    hook: str
    script: str
    cta: str
    id: str = field(default_factory=new_id)


@dataclass
class Campaign:
    """Materialized campaign: ordered posts plus optional stories and reels"""
    user_id: str
    brand_id: str
    title: str
    objective: str
    audience: str
    target_market: Optional[str] = None
    content_dialect: Optional[str] = None
    language: str = "both"
    status: str = "draft"
    visual_prefs: Optional[VisualPrefs] = None
    posts: List[CampaignPost] = field(default_factory=list)
    stories: List[CampaignStory] = field(default_factory=list)
    reels: List[CampaignReel] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)

    def find_post(self, post_id: str) -> Optional[CampaignPost]:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StrategicPlan:
    user_id: str
    brand_id: str
    title: str
    swot: Dict[str, List[str]]
    competitors: List[Dict[str, Any]]
    audience_personas: List[Dict[str, Any]]
    roadmap: List[Dict[str, Any]]
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)


@dataclass
class ImageArtifact:
    """Generated image in displayable form"""
    url: str
    mime_type: str

    def to_dict(self) -> dict:
        return {"imageUrl": self.url, "mime_type": self.mime_type}


@dataclass
class VideoArtifact:
    url: str
    delivery: str
    source_uri: str
    filename: Optional[str] = None
