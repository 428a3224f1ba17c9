"""Tests for pixelprompt.api.models — Pydantic request models.

Tests cover:
- Optional fields on GenerateRequest.
- camelCase aliases alongside snake_case field names.
- Type validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pixelprompt.api.models import GenerateRequest, SettingsUpdate


class TestGenerateRequest:
    """Test GenerateRequest Pydantic model."""

    def test_full_request(self):
        req = GenerateRequest.model_validate(
            {"prompt": "a red fox", "style": "fantasy", "systemPrompt": "be vivid"}
        )
        assert req.prompt == "a red fox"
        assert req.style == "fantasy"
        assert req.system_prompt == "be vivid"

    def test_empty_body_is_accepted_by_schema(self):
        """An empty body parses; the prompt check happens downstream."""
        req = GenerateRequest.model_validate({})
        assert req.prompt is None
        assert req.style is None
        assert req.system_prompt is None

    def test_snake_case_name_accepted(self):
        req = GenerateRequest(prompt="p", system_prompt="")
        assert req.system_prompt == ""

    def test_non_string_prompt_rejected(self):
        with pytest.raises(ValidationError):
            GenerateRequest.model_validate({"prompt": ["a", "b"]})


class TestSettingsUpdate:
    """Test SettingsUpdate Pydantic model."""

    def test_partial_update_dumps_only_given_fields(self):
        update = SettingsUpdate.model_validate({"maxImages": 10})
        assert update.model_dump(exclude_none=True) == {"max_images": 10}

    def test_all_fields(self):
        update = SettingsUpdate.model_validate(
            {"systemPrompt": "s", "defaultStyle": "vintage", "maxImages": 3}
        )
        assert update.system_prompt == "s"
        assert update.default_style == "vintage"
        assert update.max_images == 3

    def test_non_integer_max_images_rejected(self):
        with pytest.raises(ValidationError):
            SettingsUpdate.model_validate({"maxImages": "lots"})
