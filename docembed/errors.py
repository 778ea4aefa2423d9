"""Exception hierarchy for the preprocessing run.

Every failure aborts the whole batch; the CLI maps any PreprocessError
to exit status 1.
"""

from __future__ import annotations


class PreprocessError(Exception):
    """Base class for all run-aborting failures."""


class InputFileError(PreprocessError):
    pass


class OutputFileError(PreprocessError):
    pass


class DocumentSchemaError(PreprocessError):
    """Input is not valid JSON or an element lacks a usable id/text."""


class ModelLoadError(PreprocessError):
    pass


class ContextCreationError(PreprocessError):
    pass


class TokenizeError(PreprocessError):
    pass


class EncodeError(PreprocessError):
    pass


class EmbeddingUnavailableError(PreprocessError):
    """Forward pass succeeded but no pooled sequence embedding came back."""
