"""Data models for generation records, settings, and adapter results.

Models
------
GenerationStatus
    The three states a persisted record can be in.
GenerationRecord
    One user-initiated generation attempt and its outcome.
GenerationSettings
    User preferences persisted next to the records.
GenerationResult
    Normalized outcome of a single call to the external image model.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pixelprompt.core.styles import lookup

DEFAULT_SYSTEM_PROMPT = (
    "Generate a high-quality, detailed image based on the user's prompt. "
    "Focus on artistic composition, proper lighting, and visual appeal."
)
DEFAULT_STYLE_ID = "photorealistic"
DEFAULT_MAX_IMAGES = 50


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class GenerationStatus(str, Enum):
    """Lifecycle status of a generation record."""

    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


class ImageDimensions(BaseModel):
    """Pixel dimensions reported for a generated image."""

    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)


class GenerationRecord(BaseModel):
    """A single generation attempt.

    Exactly one of these holds at any time:

    - ``status == "completed"`` and ``url`` is set
    - ``status == "error"`` and ``error`` is set
    - ``status == "generating"`` and neither is set

    ``dimensions`` is never filled in by generation, since the endpoint only
    returns a URL.  It is kept so records imported from older exports that
    carry it survive a round trip.
    """

    id: str = Field(..., min_length=1, description="Record identifier")
    prompt: str = Field(..., description="Final prompt sent to the model")
    style: Optional[str] = Field(None, description="Style preset identifier, if any")
    timestamp: int = Field(default_factory=now_ms, description="Creation time (epoch ms)")
    status: GenerationStatus = Field(GenerationStatus.GENERATING, description="Lifecycle status")
    url: Optional[str] = Field(None, description="Image URL (completed records only)")
    error: Optional[str] = Field(None, description="Failure reason (error records only)")
    dimensions: Optional[ImageDimensions] = Field(None, description="Image size, when known")

    @field_validator("url", "error", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        # Older exports stored url="" on records that never completed.
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_status_payload(self):
        """Ensure the status and its payload field agree."""
        if self.status is GenerationStatus.COMPLETED:
            if not self.url:
                raise ValueError("url must be present when status='completed'")
            if self.error is not None:
                raise ValueError("error must be None when status='completed'")
        elif self.status is GenerationStatus.ERROR:
            if not self.error:
                raise ValueError("error must be present when status='error'")
            if self.url is not None:
                raise ValueError("url must be None when status='error'")
        else:
            if self.url is not None or self.error is not None:
                raise ValueError("url and error must be None while status='generating'")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status is not GenerationStatus.GENERATING

    def to_dict(self) -> dict:
        """Serialise to a JSON-ready dictionary, omitting unset payload fields."""
        return self.model_dump(mode="json", exclude_none=True)


class GenerationSettings(BaseModel):
    """User preferences.  Serialised with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    system_prompt: str = Field(
        DEFAULT_SYSTEM_PROMPT,
        alias="systemPrompt",
        description="Instruction text prepended to every prompt",
    )
    default_style: str = Field(
        DEFAULT_STYLE_ID,
        alias="defaultStyle",
        description="Style preset used when a request names none",
    )
    max_images: int = Field(
        DEFAULT_MAX_IMAGES,
        alias="maxImages",
        ge=1,
        description="Number of records retained in history",
    )

    @field_validator("default_style")
    @classmethod
    def validate_default_style(cls, value: str) -> str:
        if lookup(value) is None:
            raise ValueError(f"Unknown style: {value}")
        return value

    def merge(self, partial: dict[str, Any]) -> "GenerationSettings":
        """Return a copy with *partial* applied.

        Keys may use the camelCase alias or the field name; unknown keys are
        ignored.
        """
        data = self.model_dump()
        aliases = {f.alias: name for name, f in type(self).model_fields.items() if f.alias}
        for key, value in partial.items():
            name = aliases.get(key, key)
            if name in data:
                data[name] = value
        return type(self).model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class GenerationResult(BaseModel):
    """Normalized outcome of one call to the image model."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether an image URL was obtained")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Extracted image URL")
    error: Optional[str] = Field(None, description="Failure reason when success=False")
    id: str = Field(..., description="Identifier minted for this call")

    @model_validator(mode="after")
    def validate_success_state(self):
        """Ensure success state is consistent."""
        if self.success is True:
            if not self.image_url:
                raise ValueError("image_url must be present when success=True")
            if self.error is not None:
                raise ValueError("error must be None when success=True")
        else:
            if not self.error:
                raise ValueError("error must be present when success=False")
            if self.image_url is not None:
                raise ValueError("image_url must be None when success=False")
        return self

    @classmethod
    def ok(cls, image_url: str, generated_id: str) -> "GenerationResult":
        return cls(success=True, image_url=image_url, id=generated_id)

    @classmethod
    def failed(cls, error: str, generated_id: str) -> "GenerationResult":
        return cls(success=False, error=error, id=generated_id)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
