"""Error taxonomy for the statement-to-analysis pipeline.

Every failure the core can surface derives from :class:`JustSaveError`. Each
error carries two messages:

- ``message``: technical detail intended for logs.
- ``user_message``: a short, non-technical sentence safe to show to end users.

``retryable`` tells the caller whether offering "try again" makes sense. The
core itself never retries; repeated reasoning calls cost money and may return
different results.
"""

from __future__ import annotations

from typing import Any


def _kind_label(source_kind: str | None) -> str:
    return str(source_kind).upper() if source_kind else "file"


class JustSaveError(Exception):
    """Base exception for pipeline errors."""

    retryable: bool = False
    default_user_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        *,
        user_message: str | None = None,
        source_kind: str | None = None,
        raw_response: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.user_message = user_message or self.default_user_message
        self.source_kind = source_kind
        self.raw_response = raw_response
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(JustSaveError):
    """Required configuration (e.g. the engine credential) is missing or invalid.

    Raised when settings are loaded or a gateway is constructed, never per
    request. This is the only fatal, non-retryable condition of the pipeline.
    """

    default_user_message = "The service is not configured correctly."


class EmptyInput(JustSaveError):
    """No file content, text or transactions were supplied."""

    default_user_message = "No transactions provided."


class FileTooLarge(JustSaveError):
    """The uploaded content exceeds the configured size ceiling."""

    default_user_message = "File too large."


class UnsupportedFileType(JustSaveError):
    """The uploaded file is neither a CSV nor a PDF statement."""

    default_user_message = "Please upload a CSV or PDF file."


class ReasoningUnavailable(JustSaveError):
    """The reasoning engine call failed (network, HTTP status, auth)."""

    retryable = True
    default_user_message = "The analysis service is unavailable. Please try again."


class ReasoningTimeout(ReasoningUnavailable):
    """The reasoning engine call exceeded its deadline."""

    default_user_message = "The analysis took too long. Please try again."


class NoJsonFound(JustSaveError):
    """No decodable JSON payload could be located in the engine's response."""

    retryable = True
    default_user_message = "Failed to analyze transactions. Please try again."


class NoTransactionsFound(JustSaveError):
    """Every candidate record failed domain validation."""

    default_user_message = (
        "No transactions found. Please ensure this is a valid bank statement."
    )


class MalformedInsights(JustSaveError):
    """The insights block of an analysis response is unusable.

    Never propagated to callers: the assembler substitutes default insights.
    """


class AnalysisCancelled(JustSaveError):
    """The caller abandoned the request before the engine answered."""

    default_user_message = "The analysis was cancelled."


def extraction_format_error(
    source_kind: str | None, *, message: str, raw_response: str | None = None
) -> NoJsonFound:
    """Return a ``NoJsonFound`` phrased for a failed statement extraction."""

    return NoJsonFound(
        message,
        user_message=(
            f"Failed to parse transactions from {_kind_label(source_kind)}. "
            "The file format may not be supported."
        ),
        source_kind=source_kind,
        raw_response=raw_response,
    )


def no_transactions_error(source_kind: str | None, *, dropped: int = 0) -> NoTransactionsFound:
    """Return a ``NoTransactionsFound`` naming the statement kind."""

    return NoTransactionsFound(
        f"no valid transactions in model output (dropped={dropped})",
        user_message=(
            f"No transactions found in {_kind_label(source_kind)}. "
            "Please ensure this is a valid bank statement."
        ),
        source_kind=source_kind,
        details={"dropped": dropped},
    )


__all__ = [
    "AnalysisCancelled",
    "ConfigurationError",
    "EmptyInput",
    "FileTooLarge",
    "JustSaveError",
    "MalformedInsights",
    "NoJsonFound",
    "NoTransactionsFound",
    "ReasoningTimeout",
    "ReasoningUnavailable",
    "UnsupportedFileType",
    "extraction_format_error",
    "no_transactions_error",
]
