"""
Error types for the FocusFlow application.
None of these are fatal; the UI turns them into a banner or a warning box.
"""


class FocusFlowError(Exception):
    """Base class for all application errors."""


class ValidationError(FocusFlowError):
    """Bad user input (preset fields, import files, empty analysis batch)."""


class MissingCredentialError(FocusFlowError):
    """No Gemini API key has been stored."""


class RemoteError(FocusFlowError):
    """The analysis request failed or returned an unusable response."""


class StorageError(FocusFlowError):
    """A persistence read or write failed."""


class AnalysisInProgressError(FocusFlowError):
    """An analysis request is already in flight."""
