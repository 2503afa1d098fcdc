"""
Overlay text rules.

A campaign either mandates one exact overlay string in every post's design
notes or forbids typography altogether. Never both, never neither.
"""
import re
from typing import Optional

QUOTED_TEXT_PATTERN = re.compile(r'"([^"]+)"|“([^”]+)”')

NO_TEXT_DIRECTIVE = "Do NOT include ANY typography or text in the image."


def extract_quoted_text(prompt: str) -> Optional[str]:
    """First quoted substring in a prompt, straight or curly quotes"""
    match = QUOTED_TEXT_PATTERN.search(prompt or "")
    if not match:
        return None
    text = (match.group(1) or match.group(2)).strip()
    return text or None


def text_inclusion_instruction(custom_text: Optional[str]) -> str:
    """Instruction for the campaign planner about design_notes typography"""
    if custom_text and custom_text.strip():
        return f'STRICT REQUIREMENT: You MUST include the exact text "{custom_text.strip()}" in the design_notes.'
    return "STRICT REQUIREMENT: Do NOT include ANY typography or text in design_notes."


def inclusion_directive(text: str) -> str:
    return f'Render the exact text "{text}" as the only typography.'


def ensure_typography_directive(design_notes: str, custom_text: Optional[str]) -> str:
    """Append the inclusion or exclusion directive when the notes lack it.

    Other quoted strings are unquoted so the image step only ever sees the
    mandated text between quotes.
    """
    notes = (design_notes or "").strip()
    text = custom_text.strip() if custom_text and custom_text.strip() else None
    directive = inclusion_directive(text) if text else NO_TEXT_DIRECTIVE
    if directive in notes:
        return notes
    notes = QUOTED_TEXT_PATTERN.sub(lambda m: m.group(1) or m.group(2), notes)
    return f"{notes} {directive}".strip()
