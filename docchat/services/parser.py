"""PDF text extraction with Docling."""

from __future__ import annotations

import os
from typing import Protocol

from docchat.core.errors import ConfigurationError, ExtractionError
from docchat.core.logging import get_logger

logger = get_logger(__name__)

PDF_EXTENSION = ".pdf"
PDF_CONTENT_TYPE = "application/pdf"


class TextExtractor(Protocol):
    def extract(self, path: str) -> str:
        """Return the raw text of the document at ``path``."""
        ...


class DoclingPdfExtractor:
    """Extracts raw text from text-layer PDFs.

    OCR is disabled; a PDF without a text layer yields an ExtractionError.
    The converter is built once and reused; IngestionPipeline bounds how many
    conversions run on it at once.
    """

    def __init__(self, *, timeout: float | None = 120.0) -> None:
        try:
            from docling.datamodel.base_models import InputFormat
            from docling.datamodel.pipeline_options import PdfPipelineOptions
            from docling.document_converter import DocumentConverter, PdfFormatOption
        except ImportError as exc:
            raise ConfigurationError("Docling required. Install with: pip install docling") from exc

        pipeline_options = PdfPipelineOptions(
            do_ocr=False,
            do_table_structure=False,
            document_timeout=timeout,
        )
        self._converter = DocumentConverter(
            allowed_formats=[InputFormat.PDF],
            format_options={InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options)},
        )

    def extract(self, path: str) -> str:
        if not os.path.isfile(path):
            raise ExtractionError(f"File does not exist: {os.path.basename(path)}")

        from docling.datamodel.base_models import ConversionStatus

        logger.debug("Converting document: %s", path)
        try:
            result = self._converter.convert(path, raises_on_error=False)
        except Exception as exc:
            # Docling surfaces corrupt payloads through several backend-specific types.
            raise ExtractionError(
                f"Could not read PDF '{os.path.basename(path)}': {type(exc).__name__}"
            ) from exc

        if result.status != ConversionStatus.SUCCESS:
            errors = "; ".join(item.error_message for item in result.errors) or result.status.value
            raise ExtractionError(
                f"Could not read PDF '{os.path.basename(path)}': {errors}"
            )

        text = result.document.export_to_text()
        if not text.strip():
            raise ExtractionError(
                f"No text extracted from '{os.path.basename(path)}'. Scanned PDFs are not supported."
            )

        page_count = len(result.document.pages)
        logger.info("Extracted %d characters from %d pages", len(text), page_count)
        return text
