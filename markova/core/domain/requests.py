"""
Generation request types.

A GenerationRequest is one of CampaignRequest, ImageRequest or VideoRequest.
Each carries its prompt parameters, up to three reference images and, for
campaigns, the output-shape descriptor the response is checked against.
"""
import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union, Dict, Any

from markova.core.domain.entities import BrandKit, VisualPrefs
from markova.core.domain.errors import ValidationError, IncompleteOutputError

MAX_REFERENCE_IMAGES = 3
DEFAULT_MAX_IMAGE_BYTES = 4 * 1024 * 1024

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=-]+)*;base64,(?P<data>.*)$", re.DOTALL)


@dataclass
class ReferenceImage:
    data: bytes
    mime_type: str = "image/png"

    @classmethod
    def from_data_url(cls, value: str, field_name: str = "images") -> "ReferenceImage":
        """Decode a browser data URL; a bare base64 string is treated as PNG"""
        value = (value or "").strip()
        mime_type = "image/png"
        payload = value
        match = DATA_URL_PATTERN.match(value)
        if match:
            mime_type = match.group("mime") or mime_type
            payload = match.group("data")
        try:
            data = base64.b64decode(payload.strip(), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Reference image is not valid base64 data", field=field_name)
        return cls(data=data, mime_type=mime_type)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def validate_reference_images(
    images: List[ReferenceImage],
    field_name: str = "images",
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES
) -> List[ReferenceImage]:
    """Check count, MIME type and size before anything is transmitted"""
    if len(images) > MAX_REFERENCE_IMAGES:
        raise ValidationError(
            f"At most {MAX_REFERENCE_IMAGES} reference images are allowed, got {len(images)}",
            field=field_name
        )
    for index, image in enumerate(images):
        if not image.mime_type.startswith("image/"):
            raise ValidationError(
                f"Reference image {index + 1} has unsupported type {image.mime_type}",
                field=field_name
            )
        if not image.data:
            raise ValidationError(f"Reference image {index + 1} is empty", field=field_name)
        if len(image.data) > max_bytes:
            limit_mb = round(max_bytes / 1024 / 1024, 1)
            raise ValidationError(
                f"Reference image {index + 1} is too large. Please use an image smaller than {limit_mb}MB.",
                field=field_name
            )
    return images


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AspectRatio":
        if not value:
            return cls.SQUARE
        for member in cls:
            if value == member.value or value.lower() == member.name.lower():
                return member
        raise ValidationError(f"Unsupported aspect ratio: {value}", field="aspect_ratio")


class VideoAspectRatio(str, Enum):
    WIDESCREEN = "16:9"
    REEL = "9:16"


class VideoResolution(str, Enum):
    HD = "720p"
    FULL_HD = "1080p"


@dataclass(frozen=True)
class PostSchema:
    """Output-shape descriptor for campaign copy"""
    post_count: int = 3
    required_fields: tuple = (
        "post_number", "title", "caption_ar", "caption_en",
        "hashtags_ar", "hashtags_en", "cta", "design_notes"
    )

    def validate(self, posts: Any) -> List[Dict[str, Any]]:
        """Reject responses whose post list does not match the schema exactly"""
        if not isinstance(posts, list):
            raise IncompleteOutputError("Campaign response has no post list", missing_fields=["posts"])
        if len(posts) != self.post_count:
            raise IncompleteOutputError(
                f"Campaign response has {len(posts)} posts, expected {self.post_count}"
            )
        missing = []
        for index, post in enumerate(posts):
            if not isinstance(post, dict):
                missing.append(f"posts[{index}]")
                continue
            for name in self.required_fields:
                value = post.get(name)
                if value is None or (isinstance(value, str) and not value.strip()):
                    missing.append(f"posts[{index}].{name}")
        if missing:
            raise IncompleteOutputError(
                f"Campaign response is missing required fields: {', '.join(missing)}",
                missing_fields=missing
            )
        return posts

    def response_schema(self) -> Dict[str, Any]:
        """JSON schema handed to the model to constrain its output"""
        properties = {name: {"type": "STRING"} for name in self.required_fields}
        properties["post_number"] = {"type": "INTEGER"}
        return {
            "type": "OBJECT",
            "properties": {
                "posts": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": properties,
                        "required": list(self.required_fields),
                    },
                }
            },
            "required": ["posts"],
        }


@dataclass
class CampaignRequest:
    title: str
    objective: str
    audience: str
    brand: Optional[BrandKit]
    target_market: str = "Egypt"
    content_dialect: str = "Egyptian Arabic (General)"
    language: str = "both"
    visual_prefs: VisualPrefs = field(default_factory=VisualPrefs)
    product_images: List[ReferenceImage] = field(default_factory=list)
    schema: PostSchema = field(default_factory=PostSchema)

    def validate(self) -> "CampaignRequest":
        if self.brand is None:
            raise ValidationError("A brand kit must be selected", field="brand_id")
        if not (self.title or "").strip():
            raise ValidationError("Campaign title is required", field="title")
        validate_reference_images(self.product_images, field_name="product_images")
        return self


@dataclass
class ImageRequest:
    prompt: str
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    brand: Optional[BrandKit] = None
    reference_images: List[ReferenceImage] = field(default_factory=list)

    def validate(self) -> "ImageRequest":
        if not (self.prompt or "").strip():
            raise ValidationError("Prompt is required", field="prompt")
        validate_reference_images(self.reference_images, field_name="product_images")
        return self


@dataclass
class VideoRequest:
    prompt: str = ""
    images: List[ReferenceImage] = field(default_factory=list)
    aspect_ratio: VideoAspectRatio = VideoAspectRatio.REEL
    resolution: VideoResolution = VideoResolution.HD

    def validate(self) -> "VideoRequest":
        if not (self.prompt or "").strip() and not self.images:
            raise ValidationError("Provide a prompt or at least one reference image", field="prompt")
        validate_reference_images(self.images, field_name="images")
        return self


GenerationRequest = Union[CampaignRequest, ImageRequest, VideoRequest]


DEFAULT_VIDEO_PROMPT = "Generate a cinematic video based on the provided frames."

# Asset-reference mode only renders at these settings
ASSET_MODE_RESOLUTION = VideoResolution.HD
ASSET_MODE_ASPECT_RATIO = VideoAspectRatio.WIDESCREEN


@dataclass
class VideoPayload:
    """Provider-neutral description of one video start request"""
    model: str
    prompt: str
    resolution: str
    aspect_ratio: str
    image: Optional[ReferenceImage] = None
    last_frame: Optional[ReferenceImage] = None
    reference_images: List[ReferenceImage] = field(default_factory=list)
    number_of_videos: int = 1

    @property
    def mode(self) -> str:
        if self.reference_images:
            return "asset_reference"
        if self.last_frame is not None:
            return "interpolation"
        if self.image is not None:
            return "start_frame"
        return "text_only"


def build_video_payload(request: VideoRequest, model: str, reference_model: str) -> VideoPayload:
    """Branch on reference-image count.

    0 images: text only. 1: start frame. 2: start and end frame.
    3: asset references on the reference model, with resolution and aspect
    ratio forced to 720p / 16:9 whatever the caller selected.
    """
    request.validate()
    images = request.images
    payload = VideoPayload(
        model=model,
        prompt=request.prompt.strip() if request.prompt and request.prompt.strip() else DEFAULT_VIDEO_PROMPT,
        resolution=VideoResolution(request.resolution).value,
        aspect_ratio=VideoAspectRatio(request.aspect_ratio).value,
    )

    if len(images) == 1:
        payload.image = images[0]
    elif len(images) == 2:
        payload.image = images[0]
        payload.last_frame = images[1]
    elif len(images) == 3:
        payload.model = reference_model
        payload.resolution = ASSET_MODE_RESOLUTION.value
        payload.aspect_ratio = ASSET_MODE_ASPECT_RATIO.value
        payload.reference_images = list(images)

    return payload
