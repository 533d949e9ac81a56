"""Imagen prompt construction.

``build_imagen_prompt`` expands a short subject into a full image prompt:
a style modifier, the empty area the design template keeps free for text,
the template's aspect ratio guidance, an optional brand colour and a fixed
quality suffix.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class TemplateType(str, Enum):
    FULL_IMAGE = "full-image"
    IMAGE_TEXT = "image-text"
    TWO_COLUMN = "two-column"
    CENTERED = "centered"


@dataclass(frozen=True)
class StyleChip:
    name: str
    prompt: str


STYLE_CHIPS: Tuple[StyleChip, ...] = (
    StyleChip("Cinematic", "cinematic lighting, depth of field, film noir, moody atmosphere, professional cinematography"),
    StyleChip("Photorealistic", "photorealistic, hyper-detailed, professional photography, 8K quality, studio lighting"),
    StyleChip("Minimalist", "minimalist design, clean composition, lots of white space, simple elegant lines"),
    StyleChip("Vibrant", "vibrant colors, high contrast, saturated palette, dynamic energy, bold composition"),
    StyleChip("Moody", "moody atmosphere, dark tones, dramatic shadows, mysterious lighting, atmospheric"),
    StyleChip("Nature", "natural lighting, organic elements, earth tones, botanical, garden aesthetic"),
    StyleChip("Tech", "futuristic, digital, neon accents, sci-fi elements, modern tech aesthetic, digital art"),
    StyleChip("Luxury", "luxury aesthetic, premium materials, gold accents, sophisticated, high-end styling"),
)

DEFAULT_STYLE_PROMPT = "photorealistic, high quality, professional photography"

QUALITY_SUFFIX = "ultra high quality, 8K resolution, sharp focus, professional grade"

TEMPLATE_NEGATIVE_SPACE: Dict[TemplateType, str] = {
    TemplateType.FULL_IMAGE: "no text areas, fill entire canvas with image",
    TemplateType.IMAGE_TEXT: "leave top 10% empty (50-100px height) for text overlay in solid color",
    TemplateType.TWO_COLUMN: "leave right 50% empty with solid background for text content",
    TemplateType.CENTERED: "leave outer 8% margin as solid background color for spacing, center main content",
}

TEMPLATE_ASPECT_RATIO: Dict[TemplateType, str] = {
    TemplateType.FULL_IMAGE: "9:11.25 aspect ratio (1080x1350px)",
    TemplateType.IMAGE_TEXT: "image occupies 60% height, text area 40% height, 9:11.25 total aspect ratio",
    TemplateType.TWO_COLUMN: "left image 50% width, right text area 50% width, 9:11.25 total aspect ratio",
    TemplateType.CENTERED: "centered composition with 8% margins on all sides, 9:11.25 total aspect ratio",
}

COLOR_NAMES: Dict[str, str] = {
    "000000": "black",
    "ffffff": "white",
    "ff0000": "red",
    "00ff00": "green",
    "0000ff": "blue",
    "ffff00": "yellow",
    "ff00ff": "magenta",
    "00ffff": "cyan",
    "ff6600": "orange",
    "800080": "purple",
    "008000": "dark green",
    "808080": "gray",
    "4285f4": "google blue",
    "ea4335": "google red",
    "34a853": "google green",
    "fbbc05": "google yellow",
    "a2aaad": "google gray",
    "555555": "dark gray",
}


def style_chip(name: str) -> StyleChip:
    """Look up a style chip by name, ignoring case.

    Raises:
        ValueError: If no chip has that name.
    """
    for chip in STYLE_CHIPS:
        if chip.name.lower() == name.strip().lower():
            return chip
    raise ValueError(f"Unknown style: {name}")


def hex_to_color_name(hex_color: str) -> Optional[str]:
    return COLOR_NAMES.get(hex_color.strip().lower().lstrip("#"))


def build_imagen_prompt(
    subject: str,
    template: Union[TemplateType, str] = TemplateType.IMAGE_TEXT,
    brand_primary_color: Optional[str] = None,
    style: Optional[StyleChip] = None,
) -> str:
    """Expand *subject* into a complete Imagen prompt.

    Args:
        subject: What the image shows, e.g. ``"coffee beans"``.
        template: Design template; decides where text space is kept free.
        brand_primary_color: Hex colour. Only colours with a known name are
            mentioned in the prompt.
        style: Style chip; photorealistic when omitted.

    Returns:
        The comma-separated prompt.
    """
    template = TemplateType(template)
    parts = [subject.strip(), style.prompt if style is not None else DEFAULT_STYLE_PROMPT]
    parts.append(TEMPLATE_NEGATIVE_SPACE[template])
    parts.append(TEMPLATE_ASPECT_RATIO[template])

    if brand_primary_color:
        color = hex_to_color_name(brand_primary_color)
        if color:
            parts.append(f"incorporate {color} accent colors")

    parts.append(QUALITY_SUFFIX)
    return ", ".join(parts)


def build_text_rendering_prompt(text: str, style: Optional[StyleChip] = None) -> str:
    """Prompt that asks Imagen to render *text* inside the image itself."""
    style_prompt = style.prompt if style is not None else "cinematic, professional"
    return (
        f'Render the word "{text}" in {style_prompt}, bold typography, dramatic composition, '
        "high contrast, 8K resolution, professional design, centered, artistic effects"
    )
