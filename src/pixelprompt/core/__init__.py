"""Core functionality for PixelPrompt.

Architecture Overview
---------------------
The core package is layered leaf-first:

1. **Configuration** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with PIXELPROMPT_ in .env files

2. **Data** (styles.py, records.py, errors.py):
   - Style preset catalog
   - Generation records, settings, and client results
   - Exception taxonomy

3. **Persistence** (storage.py, history.py):
   - Record store over an injectable key-value backend
   - Filtering, sorting, pagination, and counts for history views

4. **Generation** (generation_client.py, orchestrator.py):
   - HTTP client for the external image model
   - Lifecycle state machine for a single generation attempt

Usage Example
-------------
    from pixelprompt.core import (
        GenerationOrchestrator, ImageGenerationClient, JsonFileBackend, RecordStore, config,
    )

    store = RecordStore(JsonFileBackend(config.data_dir))
    orchestrator = GenerationOrchestrator(ImageGenerationClient.from_config(config), store)
    record = await orchestrator.generate("a red fox", style="photorealistic")
"""

from pixelprompt.core.config import PixelPromptConfig, config
from pixelprompt.core.generation_client import ImageGenerationClient
from pixelprompt.core.orchestrator import GenerationAttempt, GenerationOrchestrator
from pixelprompt.core.records import GenerationRecord, GenerationSettings, GenerationStatus
from pixelprompt.core.storage import InMemoryBackend, JsonFileBackend, RecordStore

__all__ = [
    "GenerationAttempt",
    "GenerationOrchestrator",
    "GenerationRecord",
    "GenerationSettings",
    "GenerationStatus",
    "ImageGenerationClient",
    "InMemoryBackend",
    "JsonFileBackend",
    "PixelPromptConfig",
    "RecordStore",
    "config",
]
