"""Configuration management for PixelPrompt.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the PIXELPROMPT_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (PIXELPROMPT_* prefix)
2. .env file in the project root
3. Default values defined in PixelPromptConfig

Example .env file:
    PIXELPROMPT_API_KEY=sk-...
    PIXELPROMPT_MODEL_ID=replicate/black-forest-labs/flux-1.1-pro
    PIXELPROMPT_DATA_DIR=data
    PIXELPROMPT_SERVER_PORT=8000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from pixelprompt.core.config import config

    print(config.endpoint_url)
    print(config.data_dir)
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PixelPromptConfig(BaseSettings):
    """Main configuration for PixelPrompt.

    Attributes
    ----------
    External Model Settings:
        endpoint_url : str
            Chat-completions style endpoint that returns image URLs in text
        model_id : str
            Model identifier sent with every request
        api_key : str
            Bearer token for the ``Authorization`` header
        customer_id : str
            Value of the ``customerId`` header expected by the endpoint
        request_timeout : float
            Seconds before the outbound call is abandoned by the transport

    Generation Settings:
        max_prompt_length : int
            Longest accepted user prompt, in characters
        default_max_images : int
            Retention cap used when no settings have been saved yet

    Paths:
        data_dir : Path
            Directory holding the persisted records and settings

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)

    Notes
    -----
    - ``data_dir`` is created automatically if it doesn't exist
    - To modify config, set environment variables and restart the application
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIXELPROMPT_",
        case_sensitive=False,
    )

    # External model settings
    endpoint_url: str = Field(
        default="https://oi-server.onrender.com/chat/completions",
        description="Chat-completions endpoint used for image generation",
    )
    model_id: str = Field(
        default="replicate/black-forest-labs/flux-1.1-pro",
        description="Model identifier sent in the request body",
    )
    api_key: str = Field(
        default="xxx",
        description="Bearer token for the Authorization header",
    )
    customer_id: str = Field(
        default="cus_RtuUelvcC9CvX8",
        description="Customer identifier header expected by the endpoint",
    )
    request_timeout: float = Field(
        default=300.0,
        description="Transport timeout for the outbound call, in seconds",
        gt=0,
    )

    # Generation settings
    max_prompt_length: int = Field(
        default=1000,
        description="Maximum user prompt length in characters",
        ge=1,
    )
    default_max_images: int = Field(
        default=50,
        description="Retention cap applied before settings are saved",
        ge=1,
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for persisted records and settings",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (PIXELPROMPT_* prefix) and .env file.
config = PixelPromptConfig()
