"""Style preset catalog.

Each preset carries a ``prompt_modifier`` that is appended to the user's
prompt before it is sent to the image model.  The catalog is fixed at import
time and its declaration order is meaningful: the first entry is the default
style.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class StylePreset(BaseModel):
    """A read-only style definition."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Stable style identifier")
    name: str = Field(..., description="Human-readable name")
    description: str = Field(..., description="Short description shown in pickers")
    prompt_modifier: str = Field(
        ...,
        alias="promptModifier",
        description="Text appended to the user prompt",
    )
    example: str = Field(..., description="Example prompt illustrating the style")


STYLE_PRESETS: tuple[StylePreset, ...] = (
    StylePreset(
        id="photorealistic",
        name="Photorealistic",
        description="Realistic photography style with natural lighting",
        prompt_modifier="photorealistic, high quality, professional photography, natural lighting, detailed",
        example="A photorealistic portrait of a person in natural lighting",
    ),
    StylePreset(
        id="artistic",
        name="Artistic Painting",
        description="Oil painting or watercolor artistic style",
        prompt_modifier="artistic painting, oil painting style, painterly, brushstrokes, canvas texture",
        example="An artistic oil painting of a landscape with visible brushstrokes",
    ),
    StylePreset(
        id="digital_art",
        name="Digital Art",
        description="Modern digital artwork with vibrant colors",
        prompt_modifier="digital art, concept art, vibrant colors, digital painting, highly detailed",
        example="Digital concept art of a futuristic city with vibrant neon lights",
    ),
    StylePreset(
        id="fantasy",
        name="Fantasy",
        description="Magical and fantastical scenes",
        prompt_modifier="fantasy art, magical, mystical, ethereal lighting, enchanted, dreamlike",
        example="A magical forest with glowing mushrooms and fairy lights",
    ),
    StylePreset(
        id="sci_fi",
        name="Sci-Fi",
        description="Futuristic and science fiction themes",
        prompt_modifier="sci-fi, futuristic, cyberpunk, neon lighting, high-tech, space age",
        example="A futuristic cyberpunk cityscape with neon lights and flying cars",
    ),
    StylePreset(
        id="minimalist",
        name="Minimalist",
        description="Clean, simple designs with minimal elements",
        prompt_modifier="minimalist, clean design, simple, geometric, modern, white background",
        example="A minimalist geometric composition with clean lines and simple shapes",
    ),
    StylePreset(
        id="vintage",
        name="Vintage",
        description="Retro and vintage aesthetic",
        prompt_modifier="vintage, retro, aged, film photography, nostalgic, classic style",
        example="A vintage-style photograph with aged colors and retro aesthetic",
    ),
    StylePreset(
        id="abstract",
        name="Abstract",
        description="Non-representational artistic expression",
        prompt_modifier="abstract art, non-representational, flowing forms, color study, experimental",
        example="An abstract composition with flowing colors and dynamic forms",
    ),
)

_PRESETS_BY_ID: dict[str, StylePreset] = {preset.id: preset for preset in STYLE_PRESETS}


def lookup(style_id: str | None) -> StylePreset | None:
    """Return the preset registered under *style_id*, or ``None``."""
    if not style_id:
        return None
    return _PRESETS_BY_ID.get(style_id)


def list_all() -> tuple[StylePreset, ...]:
    """Return every preset in declaration order."""
    return STYLE_PRESETS


def default_style() -> StylePreset:
    """Return the default preset (the first one declared)."""
    return STYLE_PRESETS[0]
