"""Generation lifecycle: prompt validation, provisional records, terminal states.

A :class:`GenerationAttempt` is a small state machine::

    idle ──begin──▶ generating ──complete──▶ completed
                        │
                        └──────fail───────▶ error ──begin (retry)──▶ generating

While ``generating`` the attempt holds a provisional record with a
``temp_<timestamp>`` id that has not been persisted.  Reaching a terminal
state swaps in the id issued by the generation client and hands the record to
the store.  Prompts that fail validation never produce an attempt, so they
never produce a record either.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from pixelprompt.core.errors import InvalidTransitionError, PromptValidationError
from pixelprompt.core.generation_client import ImageGenerationClient
from pixelprompt.core.records import (
    GenerationRecord,
    GenerationResult,
    GenerationStatus,
    now_ms,
)
from pixelprompt.core.storage import RecordStore
from pixelprompt.core.styles import lookup

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 1000
UNKNOWN_ERROR = "Unknown error occurred"

RecordCallback = Callable[[GenerationRecord], None]


class AttemptState(str, Enum):
    """States of a single generation attempt."""

    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


def build_final_prompt(prompt: str, style_id: str | None) -> str:
    """Append the style's prompt modifier, if the style resolves and has one."""
    preset = lookup(style_id)
    modifier = preset.prompt_modifier if preset else ""
    return f"{prompt}, {modifier}" if modifier else prompt


def validate_prompt(prompt: str | None, max_length: int = MAX_PROMPT_LENGTH) -> str:
    """Return the trimmed prompt, or raise if it is empty or too long.

    Raises:
        PromptValidationError: With a message suitable for the user.
    """
    if not prompt or not prompt.strip():
        raise PromptValidationError("Prompt is required")
    if len(prompt) > max_length:
        raise PromptValidationError(f"Prompt is too long (max {max_length} characters)")
    return prompt.strip()


class GenerationAttempt:
    """One user submission and the record it produces.

    Args:
        prompt: Validated user prompt (without style modifier).
        style: Style identifier, resolved or opaque.
        system_prompt: Instruction text for the model, or ``None``.
    """

    def __init__(self, prompt: str, style: str | None = None, system_prompt: str | None = None):
        self.prompt = prompt
        self.style = style
        self.system_prompt = system_prompt
        self.final_prompt = build_final_prompt(prompt, style)
        self.state = AttemptState.IDLE
        self.record: Optional[GenerationRecord] = None
        self.persisted = False

    @property
    def is_provisional(self) -> bool:
        """True while the record exists but has not been handed to the store."""
        return self.record is not None and not self.persisted

    def begin(self) -> GenerationRecord:
        """Enter ``generating`` with a fresh provisional record.

        Allowed from ``idle`` and, for retries, from ``error``.
        """
        if self.state not in (AttemptState.IDLE, AttemptState.ERROR):
            raise InvalidTransitionError(f"Cannot start generating from state '{self.state.value}'")

        timestamp = now_ms()
        self.record = GenerationRecord(
            id=f"temp_{timestamp}",
            prompt=self.final_prompt,
            style=self.style,
            timestamp=timestamp,
            status=GenerationStatus.GENERATING,
        )
        self.persisted = False
        self.state = AttemptState.GENERATING
        return self.record

    def _require_generating(self, target: AttemptState) -> GenerationRecord:
        if self.state is not AttemptState.GENERATING or self.record is None:
            raise InvalidTransitionError(
                f"Cannot move to '{target.value}' from state '{self.state.value}'"
            )
        return self.record

    def complete(self, image_url: str, record_id: str) -> GenerationRecord:
        """Move ``generating → completed`` under the client-issued id."""
        record = self._require_generating(AttemptState.COMPLETED)
        self.record = GenerationRecord.model_validate(
            {
                **record.model_dump(),
                "id": record_id,
                "status": GenerationStatus.COMPLETED,
                "url": image_url,
            }
        )
        self.state = AttemptState.COMPLETED
        return self.record

    def fail(self, reason: str, record_id: str | None = None) -> GenerationRecord:
        """Move ``generating → error``, keeping the provisional id if none is given."""
        record = self._require_generating(AttemptState.ERROR)
        self.record = GenerationRecord.model_validate(
            {
                **record.model_dump(),
                "id": record_id or record.id,
                "status": GenerationStatus.ERROR,
                "error": reason or UNKNOWN_ERROR,
            }
        )
        self.state = AttemptState.ERROR
        return self.record

    def apply(self, result: GenerationResult) -> GenerationRecord:
        """Apply a generation client result to the in-flight record."""
        if result.success and result.image_url:
            return self.complete(result.image_url, result.id)
        return self.fail(result.error or UNKNOWN_ERROR, result.id)


class GenerationOrchestrator:
    """Drives generation attempts from submission to a persisted record.

    Args:
        client: Client for the external image model.
        store: Record store that receives terminal records.
        max_prompt_length: Longest accepted prompt, in characters.
    """

    def __init__(
        self,
        client: ImageGenerationClient,
        store: RecordStore,
        *,
        max_prompt_length: int = MAX_PROMPT_LENGTH,
    ):
        self.client = client
        self.store = store
        self.max_prompt_length = max_prompt_length

    def prepare(
        self,
        prompt: str | None,
        style: str | None = None,
        system_prompt: str | None = None,
    ) -> GenerationAttempt:
        """Validate a submission and return an idle attempt for it.

        When *style* or *system_prompt* is ``None`` the stored settings
        supply ``defaultStyle`` and ``systemPrompt``.  An empty system prompt
        means "send no system prompt".

        Raises:
            PromptValidationError: If the prompt is empty or too long.
        """
        clean_prompt = validate_prompt(prompt, self.max_prompt_length)

        if style is None or system_prompt is None:
            settings = self.store.get_settings()
            if style is None:
                style = settings.default_style
            if system_prompt is None:
                system_prompt = settings.system_prompt

        return GenerationAttempt(clean_prompt, style=style, system_prompt=system_prompt)

    def _persist(self, attempt: GenerationAttempt) -> None:
        if attempt.record is None:
            raise InvalidTransitionError("Attempt has no record to persist")
        self.store.save(attempt.record)
        attempt.persisted = True

    def _remember_choices(self, attempt: GenerationAttempt) -> None:
        updates: dict[str, str] = {}
        if attempt.system_prompt is not None:
            updates["systemPrompt"] = attempt.system_prompt
        if lookup(attempt.style) is not None:
            updates["defaultStyle"] = attempt.style
        if updates:
            self.store.save_settings(updates)

    async def run(
        self,
        attempt: GenerationAttempt,
        on_update: RecordCallback | None = None,
    ) -> GenerationRecord:
        """Take *attempt* through ``generating`` to a persisted terminal record.

        Args:
            attempt: An idle attempt, or an errored one being retried.
            on_update: Called with the provisional record as soon as it
                exists, and again with the terminal record.

        Returns:
            The terminal record, as persisted.
        """
        provisional = attempt.begin()
        logger.info(f"Generating {provisional.id}: {attempt.final_prompt[:80]!r}")
        if on_update is not None:
            on_update(provisional)

        try:
            result = await self.client.invoke(attempt.final_prompt, attempt.system_prompt or None)
        except Exception as e:
            logger.exception(f"Generation {provisional.id} raised")
            record = attempt.fail(str(e) or UNKNOWN_ERROR)
        else:
            record = attempt.apply(result)

        self._persist(attempt)
        if attempt.state is AttemptState.COMPLETED:
            self._remember_choices(attempt)
            logger.info(f"Generation {record.id} completed")
        else:
            logger.warning(f"Generation {record.id} failed: {record.error}")

        if on_update is not None:
            on_update(record)
        return record

    async def generate(
        self,
        prompt: str | None,
        style: str | None = None,
        system_prompt: str | None = None,
        on_update: RecordCallback | None = None,
    ) -> GenerationRecord:
        """Validate, generate, and persist in one call.

        Raises:
            PromptValidationError: If the prompt is rejected.  No record is
                created in that case.
        """
        attempt = self.prepare(prompt, style=style, system_prompt=system_prompt)
        return await self.run(attempt, on_update=on_update)

    async def retry(
        self,
        attempt: GenerationAttempt,
        on_update: RecordCallback | None = None,
    ) -> GenerationRecord:
        """Re-run an errored attempt with its original prompt and style.

        Raises:
            InvalidTransitionError: If *attempt* is not in the ``error`` state.
        """
        if attempt.state is not AttemptState.ERROR:
            raise InvalidTransitionError(f"Only failed attempts can be retried, not '{attempt.state.value}'")
        return await self.run(attempt, on_update=on_update)
