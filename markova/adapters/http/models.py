from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal


class CamelModel(BaseModel):
    """Accepts both snake_case names and the dashboard's camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VisualPrefsModel(CamelModel):
    art_style: str = Field("Realism", alias="artStyle")
    include_character: bool = Field(False, alias="includeCharacter")
    custom_text: Optional[str] = Field(None, alias="customText")
    visual_effect: str = Field("Cinematic Studio Lighting", alias="visualEffect")
    added_shapes: str = Field("None", alias="addedShapes")
    include_logo: bool = Field(True, alias="includeLogo")
    add_footer_shape: bool = Field(False, alias="addFooterShape")


class CampaignRequestModel(CamelModel):
    """HTTP request model for campaign planning and generation"""
    brand_id: Optional[str] = Field(None, alias="brandId", description="Brand kit used as context")
    title: str = Field("", description="Campaign title")
    objective: str = Field("", description="Campaign objective")
    audience: str = Field("", description="Target audience")
    target_market: str = Field("Egypt", alias="targetMarket")
    content_dialect: str = Field("Egyptian Arabic (General)", alias="contentDialect")
    language: Literal["ar", "en", "both"] = "both"
    visual_prefs: VisualPrefsModel = Field(default_factory=VisualPrefsModel, alias="visualPrefs")
    product_images: List[str] = Field(default_factory=list, alias="productImages",
                                      description="Data URLs of product reference images")


class ImageRequestModel(CamelModel):
    """HTTP request model for standalone image generation"""
    prompt: str = Field("", description="Scene description; quoted text is rendered verbatim")
    aspect_ratio: Optional[str] = Field(None, alias="aspectRatio")
    brand_id: Optional[str] = Field(None, alias="brandId")
    product_images: List[str] = Field(default_factory=list, alias="productImages")


class VideoRequestModel(CamelModel):
    """HTTP request model for video generation"""
    prompt: str = ""
    images: List[str] = Field(default_factory=list, description="Up to three data URL frames")
    aspect_ratio: Literal["16:9", "9:16"] = Field("9:16", alias="aspectRatio")
    resolution: Literal["720p", "1080p"] = "720p"


class StrategyRequestModel(CamelModel):
    brand_id: Optional[str] = Field(None, alias="brandId")
    goals: str = ""
    target_region: str = Field("Global", alias="targetRegion")


class BrandKitCreateModel(CamelModel):
    name: str
    primary_color: Optional[str] = Field(None, alias="primaryColor")
    secondary_color: Optional[str] = Field(None, alias="secondaryColor")
    font_family: Optional[str] = Field(None, alias="fontFamily")
    tone_of_voice: Optional[str] = Field(None, alias="toneOfVoice")
    industry: Optional[str] = None
    language: Literal["ar", "en", "both"] = "both"
    logo_url: Optional[str] = Field(None, alias="logoUrl")
    additional_colors: List[str] = Field(default_factory=list, alias="additionalColors")


class PlanFeaturesModel(CamelModel):
    brands_limit: int = Field(1, alias="brandsLimit")
    campaigns_limit: int = Field(10, alias="campaignsLimit")
    exports_limit: int = Field(10, alias="exportsLimit")
    team_limit: int = Field(1, alias="teamLimit")


class PlanCreateModel(CamelModel):
    name: str
    price_monthly: float = Field(0, alias="priceMonthly", ge=0)
    price_yearly: float = Field(0, alias="priceYearly", ge=0)
    is_active: bool = Field(True, alias="isActive")
    features: PlanFeaturesModel = Field(default_factory=PlanFeaturesModel)


class UserCreateModel(CamelModel):
    id: Optional[str] = None
    name: str
    email: str
    role: Literal["user", "admin"] = "user"
    plan_id: Optional[str] = Field(None, alias="planId")
    subscription_status: str = Field("active", alias="subscriptionStatus")


class UpdateModel(CamelModel):
    """
    Partial update: only keys present in the body are applied.
    Fields typed without Optional may be omitted but never set to null.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BrandKitUpdateModel(UpdateModel):
    name: str = None
    primary_color: str = Field(None, alias="primaryColor")
    secondary_color: str = Field(None, alias="secondaryColor")
    font_family: str = Field(None, alias="fontFamily")
    tone_of_voice: str = Field(None, alias="toneOfVoice")
    industry: str = None
    language: Literal["ar", "en", "both"] = None
    logo_url: Optional[str] = Field(None, alias="logoUrl")
    additional_colors: List[str] = Field(None, alias="additionalColors")


class CampaignUpdateModel(UpdateModel):
    title: str = None
    objective: str = None
    audience: str = None
    target_market: str = Field(None, alias="targetMarket")
    content_dialect: str = Field(None, alias="contentDialect")
    language: Literal["ar", "en", "both"] = None
    status: Literal["draft", "generated", "published"] = None


class PostUpdateModel(UpdateModel):
    title: str = None
    caption_ar: str = Field(None, alias="captionAr")
    caption_en: str = Field(None, alias="captionEn")
    hashtags_ar: str = Field(None, alias="hashtagsAr")
    hashtags_en: str = Field(None, alias="hashtagsEn")
    cta: str = None
    design_notes: str = Field(None, alias="designNotes")
    image_url: Optional[str] = Field(None, alias="imageUrl")


class PlanFeaturesUpdateModel(UpdateModel):
    brands_limit: int = Field(None, alias="brandsLimit", ge=0)
    campaigns_limit: int = Field(None, alias="campaignsLimit", ge=0)
    exports_limit: int = Field(None, alias="exportsLimit", ge=0)
    team_limit: int = Field(None, alias="teamLimit", ge=0)


class PlanUpdateModel(UpdateModel):
    name: str = None
    price_monthly: float = Field(None, alias="priceMonthly", ge=0)
    price_yearly: float = Field(None, alias="priceYearly", ge=0)
    is_active: bool = Field(None, alias="isActive")
    features: PlanFeaturesUpdateModel = None


class UserUpdateModel(UpdateModel):
    name: str = None
    email: str = None
    role: Literal["user", "admin"] = None
    plan_id: Optional[str] = Field(None, alias="planId")
    subscription_status: str = Field(None, alias="subscriptionStatus")


class HealthResponseModel(BaseModel):
    """HTTP response model for health check"""
    status: Literal["online", "unauthorized"]
    node: str
    engine: str


class ImageResponseModel(BaseModel):
    imageUrl: str
    mime_type: str


class VideoJobResponseModel(BaseModel):
    id: str
    status: str
    mode: str
    status_label: str
    video_url: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    created_at: str
    updated_at: str


class ErrorResponseModel(BaseModel):
    error: str
    error_type: str
    field: Optional[str] = None
