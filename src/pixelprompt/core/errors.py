"""Exception taxonomy for PixelPrompt.

Only :class:`PromptValidationError` and :class:`InvalidTransitionError` ever
reach a caller as exceptions.  Transport and parse failures are folded into
failure results by the generation client, storage faults degrade to default
values, and import faults become an :class:`~pixelprompt.core.storage.ImportResult`
failure.  The classes still exist so each layer can raise and catch a precise
type internally.
"""


class PixelPromptError(Exception):
    """Base class for all PixelPrompt errors."""


class PromptValidationError(PixelPromptError):
    """User-friendly validation error.

    Raised when a prompt is rejected before any generation starts.  The
    message is intended to be displayed directly to the user.
    """


class TransportError(PixelPromptError):
    """The external image endpoint returned a non-success status or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(PixelPromptError):
    """The endpoint answered, but no image URL could be extracted."""


class StorageError(PixelPromptError):
    """Stored data is missing, unreadable, or corrupt."""


class ImportFormatError(PixelPromptError):
    """An import payload could not be parsed into records and settings."""


class InvalidTransitionError(PixelPromptError):
    """A generation attempt was asked to make a transition its state forbids."""
