"""Tests for pixelprompt.core.config — configuration management.

Tests cover:
- Default values for configuration fields.
- Environment variable overrides via the PIXELPROMPT_ prefix.
- Automatic data directory creation on initialisation.
- Pydantic validation constraints.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pixelprompt.core.config import PixelPromptConfig


class TestConfigDefaults:
    """Verify that PixelPromptConfig provides sensible defaults."""

    def test_default_model_id(self, monkeypatch, temp_dir: Path):
        monkeypatch.delenv("PIXELPROMPT_MODEL_ID", raising=False)
        cfg = PixelPromptConfig(data_dir=str(temp_dir), _env_file=None)
        assert cfg.model_id == "replicate/black-forest-labs/flux-1.1-pro"

    def test_default_prompt_length_and_cap(self, test_config: PixelPromptConfig):
        """The prompt limit is 1000 characters and history keeps 50 records."""
        assert test_config.max_prompt_length == 1000
        assert test_config.default_max_images == 50

    def test_default_server_port(self, monkeypatch, temp_dir: Path):
        monkeypatch.delenv("PIXELPROMPT_SERVER_PORT", raising=False)
        cfg = PixelPromptConfig(data_dir=str(temp_dir), _env_file=None)
        assert cfg.server_port == 8000


class TestConfigOverrides:
    """Verify that environment variables override defaults."""

    def test_env_overrides_port(self, monkeypatch, temp_dir: Path):
        monkeypatch.setenv("PIXELPROMPT_SERVER_PORT", "9123")
        cfg = PixelPromptConfig(data_dir=str(temp_dir), _env_file=None)
        assert cfg.server_port == 9123

    def test_env_overrides_endpoint(self, monkeypatch, temp_dir: Path):
        monkeypatch.setenv("PIXELPROMPT_ENDPOINT_URL", "https://other.example.com/v1/chat")
        cfg = PixelPromptConfig(data_dir=str(temp_dir), _env_file=None)
        assert cfg.endpoint_url == "https://other.example.com/v1/chat"

    def test_kwargs_override(self, test_config: PixelPromptConfig):
        assert test_config.api_key == "test-key"
        assert test_config.customer_id == "cus_test"


class TestConfigDirectories:
    """Verify the data directory is created on init."""

    def test_data_dir_created(self, temp_dir: Path):
        target = temp_dir / "nested" / "data"
        assert not target.exists()
        PixelPromptConfig(data_dir=str(target), _env_file=None)
        assert target.is_dir()


class TestConfigValidation:
    """Verify Pydantic constraints are enforced."""

    def test_port_below_range_rejected(self, temp_dir: Path):
        with pytest.raises(ValidationError):
            PixelPromptConfig(data_dir=str(temp_dir), server_port=80, _env_file=None)

    def test_non_positive_timeout_rejected(self, temp_dir: Path):
        with pytest.raises(ValidationError):
            PixelPromptConfig(data_dir=str(temp_dir), request_timeout=0, _env_file=None)
