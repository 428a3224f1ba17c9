"""Pydantic request models for the PixelPrompt API.

These models define the JSON schema for the endpoints that accept a body.
FastAPI uses them for request parsing, serialisation, and OpenAPI
documentation generation.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
SettingsUpdate
    Payload for ``PUT /api/settings`` — any subset of the settings fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    ``prompt`` is optional at the schema level so that a missing prompt is
    reported through the same 400 response as an empty one.

    Attributes:
        prompt: The user's description of the image (at most 1000 characters).
        style: Style preset identifier.  ``None`` uses the saved default style.
        system_prompt: Instruction text prepended to the prompt.  ``None``
            uses the saved system prompt; an empty string sends none.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(
        default=None,
        description="Image description (required, max 1000 characters).",
    )
    style: str | None = Field(
        default=None,
        description="Style preset identifier (e.g. 'photorealistic').",
    )
    system_prompt: str | None = Field(
        default=None,
        alias="systemPrompt",
        description="Instruction text prepended to the prompt.",
    )


class SettingsUpdate(BaseModel):
    """Request body for the ``PUT /api/settings`` endpoint.

    Omitted fields keep their current value.
    """

    model_config = ConfigDict(populate_by_name=True)

    system_prompt: str | None = Field(
        default=None,
        alias="systemPrompt",
        description="Instruction text prepended to every prompt.",
    )
    default_style: str | None = Field(
        default=None,
        alias="defaultStyle",
        description="Style preset used when a request names none.",
    )
    max_images: int | None = Field(
        default=None,
        alias="maxImages",
        description="Number of records retained in history.",
    )
