"""PDF text extraction collaborator.

Turns PDF bytes into plain text with ``pdfplumber`` so the reasoning engine can
read the statement. Only the resulting string enters the pipeline; nothing is
written to disk.
"""

from __future__ import annotations

import io

import pdfplumber

from .errors import EmptyInput
from .logging_setup import get_logger

_logger = get_logger("just_save.pdf_text")


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page joined by blank lines.

    Pages without a text layer (scanned images) contribute nothing. A document
    with no extractable text at all raises ``EmptyInput``.
    """

    if not data:
        raise EmptyInput(
            "PDF input is empty", user_message="The PDF file is empty.", source_kind="pdf"
        )

    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text(x_tolerance=3, y_tolerance=3) or ""
            if text.strip():
                pages.append(text)
        n_pages = len(pdf.pages)

    _logger.info("pdf_text:extracted pages=%d text_pages=%d", n_pages, len(pages))
    if not pages:
        raise EmptyInput(
            "PDF has no extractable text layer",
            user_message="No readable text found in PDF. Scanned statements are not supported.",
            source_kind="pdf",
        )
    return "\n\n".join(pages)


__all__ = ["extract_pdf_text"]
