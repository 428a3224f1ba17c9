"""Record and settings persistence for PixelPrompt.

The store keeps two named JSON blobs in a key-value backend:

- ``ai_generated_images`` — the record list, newest first
- ``ai_generation_settings`` — the settings object

Backends are injectable.  :class:`InMemoryBackend` suits tests and
throw-away sessions; :class:`JsonFileBackend` keeps one JSON file per key in
a data directory, which is what the server uses.

Reads are forgiving: if a blob is missing, unreadable, or invalid JSON, the
caller gets the empty/default value rather than an exception.  Individual
record entries that fail validation are dropped on load.  Writes propagate
:class:`~pixelprompt.core.errors.StorageError`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pixelprompt.core.errors import ImportFormatError, StorageError
from pixelprompt.core.records import (
    DEFAULT_MAX_IMAGES,
    GenerationRecord,
    GenerationSettings,
    GenerationStatus,
)

logger = logging.getLogger(__name__)

_STATUS_ADAPTER = TypeAdapter(GenerationStatus)

RECORDS_KEY = "ai_generated_images"
SETTINGS_KEY = "ai_generation_settings"


# ---------------------------------------------------------------------------
# Backends.
# ---------------------------------------------------------------------------


class KeyValueBackend(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored text for *key*, or ``None`` if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*.  Absent keys are ignored."""
        ...


class InMemoryBackend:
    """Dictionary-backed store, lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend:
    """One ``<key>.json`` file per key inside *data_dir*."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {path}: {e}") from e


# ---------------------------------------------------------------------------
# Record store.
# ---------------------------------------------------------------------------


class ImportResult(BaseModel):
    """Outcome of :meth:`RecordStore.import_snapshot`."""

    success: bool = Field(..., description="Whether the snapshot was applied")
    error: Optional[str] = Field(None, description="Reason the snapshot was rejected")
    records_imported: int = Field(0, ge=0, description="Number of records now stored")


class RecordStore:
    """CRUD, retention, export, and import for generation records.

    Args:
        backend: Key-value backend holding the two JSON blobs.
        default_max_images: Retention cap used until settings are saved.
    """

    def __init__(self, backend: KeyValueBackend, *, default_max_images: int = DEFAULT_MAX_IMAGES):
        self.backend = backend
        self.default_max_images = default_max_images

    # -- internal helpers ----------------------------------------------------

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.backend.get(key)
        except StorageError as e:
            logger.warning(f"Failed to read '{key}' from storage: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored '{key}' is not valid JSON, ignoring it: {e}")
            return None

    def _load_records(self) -> list[GenerationRecord]:
        raw_entries = self._read_json(RECORDS_KEY)
        if raw_entries is None:
            return []
        if not isinstance(raw_entries, list):
            logger.warning(f"Stored '{RECORDS_KEY}' is not a list, ignoring it")
            return []

        records: list[GenerationRecord] = []
        for entry in raw_entries:
            try:
                records.append(GenerationRecord.model_validate(entry))
            except PydanticValidationError as e:
                logger.warning(f"Dropping malformed stored record: {e.error_count()} error(s)")
        return records

    def _write_records(self, records: list[GenerationRecord]) -> None:
        self.backend.set(RECORDS_KEY, json.dumps([r.to_dict() for r in records]))

    def _default_settings(self) -> GenerationSettings:
        return GenerationSettings(max_images=self.default_max_images)

    # -- records -------------------------------------------------------------

    def save(self, record: GenerationRecord) -> None:
        """Insert *record* at the head and evict anything beyond ``maxImages``."""
        records = self._load_records()
        records.insert(0, record)
        max_images = self.get_settings().max_images
        if len(records) > max_images:
            logger.debug(f"Evicting {len(records) - max_images} record(s) over the cap of {max_images}")
            records = records[:max_images]
        self._write_records(records)

    def list(self) -> list[GenerationRecord]:
        """Return every retained record, newest first."""
        return self._load_records()

    def get_by_id(self, record_id: str) -> Optional[GenerationRecord]:
        return next((r for r in self._load_records() if r.id == record_id), None)

    def update(self, record_id: str, fields: dict[str, Any]) -> Optional[GenerationRecord]:
        """Merge *fields* into the record with *record_id*.

        When ``status`` changes, the payload field belonging to the old status
        is dropped so the record stays consistent.  Unknown ids are ignored.

        Returns:
            The updated record, or ``None`` if no record matched.

        Raises:
            pydantic.ValidationError: If the merged record is invalid,
                including an unknown ``status``.
        """
        records = self._load_records()
        index = next((i for i, r in enumerate(records) if r.id == record_id), None)
        if index is None:
            return None

        merged = records[index].model_dump()
        merged.update(fields)
        status = _STATUS_ADAPTER.validate_python(merged["status"])
        if status is GenerationStatus.COMPLETED:
            merged["error"] = None
        elif status is GenerationStatus.ERROR:
            merged["url"] = None
        else:
            merged["url"] = None
            merged["error"] = None

        updated = GenerationRecord.model_validate(merged)
        records[index] = updated
        self._write_records(records)
        return updated

    def delete(self, record_id: str) -> bool:
        """Remove the record with *record_id*.

        Returns:
            ``True`` if a record was removed.
        """
        records = self._load_records()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._write_records(remaining)
        return True

    def clear(self) -> None:
        self.backend.delete(RECORDS_KEY)

    # -- settings ------------------------------------------------------------

    def get_settings(self) -> GenerationSettings:
        """Return the stored settings, with every missing field defaulted.

        Stored fields are applied one at a time, so a field that no longer
        validates (a retired style, say) falls back to its default without
        discarding the others.
        """
        settings = self._default_settings()
        stored = self._read_json(SETTINGS_KEY)
        if not isinstance(stored, dict):
            return settings
        for key, value in stored.items():
            try:
                settings = settings.merge({key: value})
            except PydanticValidationError as e:
                logger.warning(f"Ignoring invalid stored setting '{key}': {e.errors()[0]['msg']}")
        return settings

    def save_settings(self, partial: dict[str, Any]) -> GenerationSettings:
        """Merge *partial* onto the current settings and persist the result.

        Keys may use either the camelCase or snake_case spelling.

        Raises:
            pydantic.ValidationError: If the merged settings are invalid.
        """
        updated = self.get_settings().merge(partial)
        self.backend.set(SETTINGS_KEY, json.dumps(updated.to_dict()))
        return updated

    # -- snapshots -----------------------------------------------------------

    def export_snapshot(self) -> str:
        """Serialise all records and settings into a JSON document."""
        return json.dumps(
            {
                "records": [r.to_dict() for r in self.list()],
                "settings": self.get_settings().to_dict(),
                "exportTimestamp": datetime.now(timezone.utc).isoformat(),
            },
            indent=2,
        )

    @staticmethod
    def export_filename(when: datetime | None = None) -> str:
        """Suggested download filename for an export taken at *when*."""
        when = when or datetime.now(timezone.utc)
        return f"ai-images-export-{when.strftime('%Y-%m-%d')}.json"

    def _parse_snapshot(
        self, blob: str | bytes
    ) -> tuple[list[GenerationRecord] | None, GenerationSettings | None]:
        try:
            data = json.loads(blob)
        except ValueError as e:
            raise ImportFormatError(f"Invalid JSON data: {e}") from e
        if not isinstance(data, dict):
            raise ImportFormatError("Snapshot must be a JSON object")

        records: list[GenerationRecord] | None = None
        raw_records = data.get("records", data.get("images"))
        if raw_records is not None:
            if not isinstance(raw_records, list):
                raise ImportFormatError("'records' must be a list")
            try:
                records = [GenerationRecord.model_validate(entry) for entry in raw_records]
            except PydanticValidationError as e:
                raise ImportFormatError(f"Malformed record in snapshot: {e.errors()[0]['msg']}") from e

        settings: GenerationSettings | None = None
        raw_settings = data.get("settings")
        if isinstance(raw_settings, dict):
            try:
                settings = self.get_settings().merge(raw_settings)
            except PydanticValidationError as e:
                raise ImportFormatError(f"Malformed settings in snapshot: {e.errors()[0]['msg']}") from e

        return records, settings

    def import_snapshot(self, blob: str | bytes) -> ImportResult:
        """Apply a snapshot produced by :meth:`export_snapshot`.

        The record list is replaced wholesale and settings are merged.  The
        whole snapshot is validated before anything is written, so a rejected
        snapshot leaves the store untouched.
        """
        try:
            records, settings = self._parse_snapshot(blob)
        except ImportFormatError as e:
            logger.info(f"Rejected snapshot import: {e}")
            return ImportResult(success=False, error=str(e))

        if records is not None:
            self._write_records(records)
        if settings is not None:
            self.backend.set(SETTINGS_KEY, json.dumps(settings.to_dict()))

        return ImportResult(success=True, records_imported=len(self.list()))
