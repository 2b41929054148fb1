"""Exception hierarchy.

Errors are grouped by pipeline stage so callers can decide how far a failure
should propagate: configuration errors stop everything before translation
starts, preprocess/translate/postprocess errors only fail the file (and target
language) they belong to.
"""

from __future__ import annotations

from typing import List, Sequence


class TranslatorError(Exception):
    """Base class for every error raised by this package."""


# --- Configuration ---------------------------------------------------------

class ConfigError(TranslatorError):
    """Invalid or missing configuration."""


class MissingFieldError(ConfigError):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class InvalidPathError(ConfigError):
    def __init__(self, message: str):
        super().__init__(f"Invalid path: {message}")


class InvalidConfigValueError(ConfigError):
    """One or more settings are out of range."""

    def __init__(self, problems: Sequence[str]):
        self.problems: List[str] = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class MissingApiKeyError(ConfigError):
    pass


# --- Preprocess ------------------------------------------------------------

class PreprocessError(TranslatorError):
    """The source file could not be prepared for translation."""


class InvalidStructureError(PreprocessError):
    pass


class FileTooLargeError(PreprocessError):
    pass


# --- Translate -------------------------------------------------------------

class TranslateError(TranslatorError):
    """A backend request or one of its inputs failed."""


class ApiRequestError(TranslateError):
    """Transport-level failure (connection refused, timeout, ...)."""


class ApiStatusError(TranslateError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"API request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class InvalidResponseError(TranslateError):
    pass


class RateLimitedError(TranslateError):
    def __init__(self, message: str = "Rate limited"):
        super().__init__(message)


class AuthenticationFailedError(TranslateError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class GlossaryError(TranslateError):
    pass


class GlossaryParseError(GlossaryError):
    pass


class GlossaryNotFoundError(GlossaryError):
    pass


class TemplateLoadError(TranslateError):
    pass


class ChunkTranslationError(TranslateError):
    """A single chunk failed; keeps the chunk for reporting."""

    def __init__(self, chunk, cause: BaseException):
        super().__init__(f"{chunk.label}: {cause}")
        self.chunk = chunk
        self.cause = cause


class BatchTranslationError(TranslateError):
    """One or more chunks of a batch failed.

    ``errors`` keeps the underlying exceptions for diagnostics.
    """

    def __init__(self, errors: Sequence[BaseException]):
        self.errors: List[BaseException] = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} chunk(s) failed: {details}")


# --- Postprocess -----------------------------------------------------------

class PostprocessError(TranslatorError):
    """Translated slices could not be turned into an output file."""


class EmptyInputError(PostprocessError):
    def __init__(self, message: str = "No translation slices to merge"):
        super().__init__(message)


class NonContiguousError(PostprocessError):
    def __init__(self, previous_end: int, next_start: int):
        super().__init__(
            f"Slices are not contiguous: {next_start} != {previous_end} + 1"
        )
        self.previous_end = previous_end
        self.next_start = next_start


class WriteFailedError(PostprocessError):
    pass
