import logging
from io import BytesIO
from typing import Optional, Tuple

from google.genai import types
from PIL import Image, UnidentifiedImageError

from markova.core.domain.errors import NoOutputError
from markova.core.domain.requests import ImageRequest
from markova.core.domain.typography import extract_quoted_text
from markova.core.ports.outbound import ImageGenerationPort
from markova.adapters.external.genai_client import GenAIClientProvider
from markova.adapters.external.llm_adapter import image_parts
from markova.infrastructure.prompts import PromptTemplates, PromptConfig
from markova.logging_config import TimingContext

logger = logging.getLogger(__name__)


def sniff_image_mime(data: bytes) -> Optional[str]:
    """MIME type from the image header, or None when Pillow cannot read it"""
    try:
        with Image.open(BytesIO(data)) as img:
            return Image.MIME.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None


def build_image_prompt(request: ImageRequest) -> str:
    quoted = extract_quoted_text(request.prompt)
    if quoted:
        typography = PromptTemplates.IMAGE_QUOTED_TEXT.format(text=quoted)
    else:
        typography = PromptTemplates.IMAGE_NO_TEXT

    prompt = PromptConfig.format_prompt("image", prompt=request.prompt.strip(), typography=typography)
    if request.brand is not None:
        prompt += "\n" + PromptTemplates.IMAGE_BRAND_CONTEXT.format(brand_summary=request.brand.style_summary())
    return prompt


class ImageGenerationAdapter(ImageGenerationPort):
    """Generates images with a Gemini image model"""

    def __init__(self, client_provider: GenAIClientProvider, model: str = "gemini-2.5-flash-image"):
        self.client_provider = client_provider
        self.model = model

    async def generate_image(self, request: ImageRequest) -> Tuple[bytes, str]:
        """Generate one image and return its bytes and MIME type"""
        parts = image_parts(request.reference_images)
        parts.append(types.Part.from_text(text=build_image_prompt(request)))

        client = self.client_provider.get_client()
        with TimingContext("image_generation", logger, {
            "model": self.model,
            "aspect_ratio": request.aspect_ratio.value
        }):
            with self.client_provider.translate_errors("generate_image"):
                response = await client.aio.models.generate_content(
                    model=self.model,
                    contents=[types.Content(role="user", parts=parts)],
                    config=types.GenerateContentConfig(
                        image_config=types.ImageConfig(aspect_ratio=request.aspect_ratio.value)
                    )
                )

        # First inline payload wins
        for candidate in response.candidates or []:
            content = candidate.content
            for part in (content.parts if content and content.parts else []):
                if part.inline_data and part.inline_data.data:
                    data = part.inline_data.data
                    mime_type = part.inline_data.mime_type or sniff_image_mime(data) or "image/png"
                    logger.info("Image received", extra={
                        "mime_type": mime_type,
                        "image_size_kb": round(len(data) / 1024, 1)
                    })
                    return data, mime_type

        raise NoOutputError("No image generated")
