"""Custom exceptions for PainPoint."""


class PainPointError(Exception):
    """Base exception for PainPoint."""

    pass


class NotFoundError(PainPointError):
    """A row does not exist or is not owned by the caller."""

    pass


class MissingApiKeyError(PainPointError):
    """The user has not stored an OpenAI API key in their settings."""

    pass


class AnalysisError(PainPointError):
    """Errors talking to the LLM during pain point analysis."""

    pass


class TranscriptionError(PainPointError):
    """Errors while transcribing a recording."""

    pass


class StorageError(PainPointError):
    """Errors reading or writing recording files."""

    pass
