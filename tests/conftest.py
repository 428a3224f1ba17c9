"""Shared pytest fixtures for PixelPrompt tests."""

import os
import shutil
import tempfile

# Keep the import-time global config from creating ./data in the working tree.
os.environ.setdefault("PIXELPROMPT_DATA_DIR", tempfile.mkdtemp(prefix="pixelprompt-test-"))

from pathlib import Path  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402

from pixelprompt.core.config import PixelPromptConfig  # noqa: E402
from pixelprompt.core.orchestrator import GenerationOrchestrator  # noqa: E402
from pixelprompt.core.records import (  # noqa: E402
    GenerationRecord,
    GenerationResult,
    GenerationStatus,
)
from pixelprompt.core.storage import InMemoryBackend, JsonFileBackend, RecordStore  # noqa: E402


class MockImageClient:
    """Stand-in for ImageGenerationClient that records calls.

    Args:
        image_url: URL returned on success.
        error: If set, every call returns a failure with this reason.
        raise_exc: If set, every call raises this exception.
    """

    def __init__(
        self,
        image_url: str = "https://images.example.com/out.png",
        error: str | None = None,
        raise_exc: Exception | None = None,
    ):
        self.image_url = image_url
        self.error = error
        self.raise_exc = raise_exc
        self.calls: list[tuple[str, str | None]] = []
        self.connected = True

    async def invoke(self, final_prompt: str, system_prompt: str | None = None) -> GenerationResult:
        self.calls.append((final_prompt, system_prompt))
        if self.raise_exc is not None:
            raise self.raise_exc
        generated_id = f"img_mock_{len(self.calls)}"
        if self.error is not None:
            return GenerationResult.failed(self.error, generated_id)
        return GenerationResult.ok(self.image_url, generated_id)

    async def test_connection(self) -> bool:
        return self.connected


def make_record(index: int, **overrides) -> GenerationRecord:
    """Build a completed record whose timestamp grows with *index*."""
    data = {
        "id": f"img_{index}",
        "prompt": f"prompt {index}",
        "style": "photorealistic",
        "timestamp": 1_700_000_000_000 + index,
        "status": GenerationStatus.COMPLETED,
        "url": f"https://images.example.com/{index}.png",
    }
    data.update(overrides)
    return GenerationRecord.model_validate(data)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> PixelPromptConfig:
    """Create a test configuration rooted in a temporary directory."""
    return PixelPromptConfig(
        data_dir=str(temp_dir / "data"),
        endpoint_url="https://images.example.com/chat/completions",
        model_id="test/model",
        api_key="test-key",
        customer_id="cus_test",
        _env_file=None,
    )


@pytest.fixture
def record_factory():
    """Return :func:`make_record` so tests can build records by index."""
    return make_record


@pytest.fixture
def memory_store() -> RecordStore:
    """Record store over a fresh in-memory backend."""
    return RecordStore(InMemoryBackend())


@pytest.fixture
def file_store(temp_dir: Path) -> RecordStore:
    """Record store over JSON files in a temporary directory."""
    return RecordStore(JsonFileBackend(temp_dir / "store"))


@pytest.fixture
def mock_client() -> MockImageClient:
    """A client that always succeeds."""
    return MockImageClient()


@pytest.fixture
def failing_client() -> MockImageClient:
    """A client whose reply never contains an image URL."""
    return MockImageClient(error="No image URL found in response")


@pytest.fixture
def orchestrator(mock_client: MockImageClient, memory_store: RecordStore) -> GenerationOrchestrator:
    """Orchestrator wired to the succeeding mock client and in-memory store."""
    return GenerationOrchestrator(mock_client, memory_store)


@pytest.fixture
def test_client(mock_client: MockImageClient, memory_store: RecordStore):
    """FastAPI TestClient with the store and orchestrator swapped for test doubles."""
    from fastapi.testclient import TestClient

    from pixelprompt.api.main import app

    with TestClient(app) as client:
        app.state.store = memory_store
        app.state.orchestrator = GenerationOrchestrator(mock_client, memory_store)
        yield client


@pytest.fixture
def client_factory():
    """Return :class:`MockImageClient` for tests that need a custom client."""
    return MockImageClient
