"""
Error taxonomy for the health analysis service.

Every failure the pipeline can surface is a HealthAnalysisError carrying a
short label, a longer human-readable details string and the HTTP status the
API answers with. The `kind` is the class name and is reported to callers
so they can branch on it without parsing the label.
"""

from typing import List, Optional, Tuple, Type


class HealthAnalysisError(Exception):
    status_code = 500
    label = "An error occurred during analysis"

    def __init__(self, details: Optional[str] = None, label: Optional[str] = None):
        self.details = details
        if label is not None:
            self.label = label
        super().__init__(self.label if details is None else f"{self.label}: {details}")

    @property
    def kind(self) -> str:
        return type(self).__name__


# ==============================================================================
# Client input errors (400)
# ==============================================================================

class ClientInputError(HealthAnalysisError):
    status_code = 400


class MalformedRequest(ClientInputError):
    label = "Invalid request format"


class MissingFile(ClientInputError):
    label = "No file found. Please upload a file."


class MissingIdentifier(ClientInputError):
    label = "Wallet address is required. Please send your wallet address."


class UnsupportedFileType(ClientInputError):
    label = "Unsupported file type"


class FileTooLarge(ClientInputError):
    label = "File size is too large"


class NotHealthDocument(ClientInputError):
    label = "This document is not health-related"


# ==============================================================================
# Server and upstream errors (500)
# ==============================================================================

class AnalysisParseError(HealthAnalysisError):
    label = "Failed to parse AI analysis"


class AnalysisSchemaError(HealthAnalysisError):
    label = "AI analysis did not match the expected format"


class PersistenceError(HealthAnalysisError):
    label = "Failed to save analysis"


class RewardError(HealthAnalysisError):
    label = "Failed to credit reward tokens"


class UpstreamCredentialError(HealthAnalysisError):
    label = "API key error"


class UpstreamQuotaError(HealthAnalysisError):
    label = "API quota exceeded"


class UnreadableFileError(HealthAnalysisError):
    label = "Invalid file format"


class AnalysisFailed(HealthAnalysisError):
    pass


# Heuristic: upstream SDK messages are not a stable contract. First match wins.
ERROR_CLASSIFICATION_RULES: List[Tuple[str, Type[HealthAnalysisError], str]] = [
    ("API key", UpstreamCredentialError, "Gemini API key is invalid or missing"),
    ("quota", UpstreamQuotaError, "Daily API usage limit reached"),
    ("invalid", UnreadableFileError, "The file format could not be read or is corrupted"),
]


def classify_unexpected_error(error: Exception) -> HealthAnalysisError:
    """Maps an uncaught exception onto the closest known error kind."""
    message = str(error)
    for pattern, error_cls, details in ERROR_CLASSIFICATION_RULES:
        if pattern in message:
            return error_cls(details)
    return AnalysisFailed(message)
