"""
Prompt Templates Configuration

This module contains all prompt templates used for generation requests.
Templates use Python string formatting for dynamic content injection.
"""

import os
from typing import Dict

class PromptTemplates:
    """Collection of generation prompt templates"""

    # Campaign planning instruction, sent after the product reference images
    CAMPAIGN_PLAN_TEMPLATE = """System: Senior Creative Director. Task: Plan a {post_count}-post campaign.
Title: {title}
Objective: {objective}
Audience: {audience}
Market: {target_market}
Dialect: {content_dialect}
Language: {language}
Brand: {brand_summary}
Style: {art_style}, {visual_effect}
{text_instruction}"""

    # Image generation instruction
    IMAGE_TEMPLATE = """SCENE: {prompt}
TECHNICAL: Professional studio lighting, 8k resolution, cinematic.
{typography}"""

    IMAGE_BRAND_CONTEXT = "BRAND CONTEXT: {brand_summary} Use the brand colours as the dominant palette."

    IMAGE_QUOTED_TEXT = 'TYPOGRAPHY: Render exactly the text "{text}" and no other text.'

    IMAGE_NO_TEXT = "EXCLUSION: No text unless explicitly quoted in prompt. Do NOT include ANY typography or text in the image."

    # Strategic plan
    STRATEGY_TEMPLATE = """Task: Create a 12-month strategic plan.
Brand: {brand_name} ({industry})
Goals: {goals}
Region: {target_region}
Output: JSON format including SWOT, competitors, roadmap, and audience personas.
Use exactly these top-level keys: "swot" (object with strengths, weaknesses, opportunities, threats lists), "competitors" (list of objects with name, strength, weakness), "audience_personas" (list of objects with name, age, interests, pain_points), "roadmap" (list of 12 objects with month, focus, key_actions)."""

class PromptConfig:
    """Configuration for prompt selection and customization"""

    # Custom campaign template from environment (for advanced users)
    CUSTOM_CAMPAIGN_TEMPLATE: str = os.getenv("CAMPAIGN_CUSTOM_PROMPT", "")

    TEMPLATES: Dict[str, str] = {
        "campaign": PromptTemplates.CAMPAIGN_PLAN_TEMPLATE,
        "image": PromptTemplates.IMAGE_TEMPLATE,
        "strategy": PromptTemplates.STRATEGY_TEMPLATE
    }

    @classmethod
    def get_template(cls, template_name: str) -> str:
        """Get prompt template by name"""
        if template_name == "campaign" and cls.CUSTOM_CAMPAIGN_TEMPLATE:
            return cls.CUSTOM_CAMPAIGN_TEMPLATE
        return cls.TEMPLATES[template_name]

    @classmethod
    def format_prompt(cls, template_name: str, **kwargs) -> str:
        """Format prompt template with provided variables"""
        return cls.get_template(template_name).format(**kwargs)

