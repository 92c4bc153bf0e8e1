"""Input normalization: raw uploaded content to prompt-ready text.

Pure transformations plus fail-fast size and emptiness checks. PDF byte-level
parsing is not done here; PDFs arrive as text already extracted by
:mod:`just_save.pdf_text` (or any other collaborator).
"""

from __future__ import annotations

from pathlib import PurePath

from .config import Settings
from .errors import EmptyInput, FileTooLarge, UnsupportedFileType
from .models import SourceKind

TRUNCATION_MARKER = "\n... (truncated)"

_CONTENT_TYPES: dict[str, SourceKind] = {
    "text/csv": SourceKind.CSV,
    "application/csv": SourceKind.CSV,
    "application/vnd.ms-excel": SourceKind.CSV,
    "application/pdf": SourceKind.PDF,
}


def detect_source_kind(filename: str | None, content_type: str | None = None) -> SourceKind:
    """Infer the statement kind from a filename extension or MIME type.

    The extension wins when both are present, since browsers commonly report
    CSV uploads with generic MIME types.
    """

    if filename:
        suffix = PurePath(filename).suffix.lower()
        if suffix == ".csv":
            return SourceKind.CSV
        if suffix == ".pdf":
            return SourceKind.PDF
    if content_type:
        kind = _CONTENT_TYPES.get(content_type.split(";", 1)[0].strip().lower())
        if kind is not None:
            return kind
    raise UnsupportedFileType(
        f"unsupported file: name={filename!r} content_type={content_type!r}"
    )


def _decode(content: str | bytes) -> str:
    if isinstance(content, bytes):
        text = content.decode("utf-8", errors="replace")
    else:
        text = content
    return text.removeprefix("\ufeff")


def _format_mb(n_bytes: int) -> str:
    mb = n_bytes / (1024 * 1024)
    return f"{mb:.0f}" if mb.is_integer() else f"{mb:.1f}"


def truncate_text(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` and append the truncation marker."""

    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def ensure_within_limit(
    size_bytes: int, source_kind: SourceKind | str, settings: Settings
) -> None:
    """Raise ``FileTooLarge`` when ``size_bytes`` exceeds the ceiling for the kind."""

    kind = SourceKind(source_kind)
    limit = settings.max_bytes_for(kind)
    if size_bytes > limit:
        raise FileTooLarge(
            f"{kind} input is {size_bytes} bytes; limit is {limit}",
            user_message=f"File too large. Maximum size is {_format_mb(limit)}MB.",
            source_kind=kind,
            details={"size_bytes": size_bytes, "limit": limit},
        )


def normalize_input(
    content: str | bytes,
    source_kind: SourceKind | str,
    *,
    size_bytes: int | None = None,
    settings: Settings | None = None,
) -> str:
    """Validate and prepare statement text for embedding in a prompt.

    Checks run in order: size ceiling for the declared ``source_kind``
    (``size_bytes`` when the caller knows the upload size, else the encoded
    length), then emptiness. Text over the character budget is truncated with
    a visible marker so the engine knows the tail was cut.

    Raises ``FileTooLarge`` or ``EmptyInput``; neither is retryable.
    """

    settings = settings or Settings()
    kind = SourceKind(source_kind)

    if size_bytes is None:
        size_bytes = len(content) if isinstance(content, bytes) else len(content.encode("utf-8"))
    ensure_within_limit(size_bytes, kind, settings)

    text = _decode(content)
    if not text.strip():
        raise EmptyInput(
            f"{kind} input is empty",
            user_message=f"The {kind.upper()} file is empty.",
            source_kind=kind,
        )

    return truncate_text(text, settings.max_text_chars)


__all__ = [
    "TRUNCATION_MARKER",
    "detect_source_kind",
    "ensure_within_limit",
    "normalize_input",
    "truncate_text",
]
