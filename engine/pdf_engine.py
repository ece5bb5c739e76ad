"""
Image Extraction Engine - Core Coordinator

The ExtractionEngine opens a document with pikepdf, checks that extraction is
permitted and drives the image extraction device over the selected pages.

Usage:
    >>> from engine.pdf_engine import ExtractionEngine
    >>> from engine.config import ExtractionConfig
    >>>
    >>> with ExtractionEngine('document.pdf', ExtractionConfig(direct_jpeg=True)) as engine:
    ...     result = engine.extract_images()
    ...     print(f"Wrote {len(result.images)} images")
"""

import logging
import os
from pathlib import Path
from typing import Optional, Any, Dict

import pikepdf

from engine.config import ExtractionConfig
from engine.extraction_context import ExtractionContext
from engine.image_processor import ImageMaterializer
from models.pdf_types import ExtractionResult
from processors.image_extraction_device import ImageExtractionDevice
from processors.pdf_objects import check_extraction_permission, open_document
from utils.validation import PdfValidationError, comprehensive_pdf_validation

logger = logging.getLogger(__name__)


class ExtractionEngine:
    """
    Extraction run coordinator with resource management.

    Example:
        >>> with ExtractionEngine('document.pdf') as engine:
        ...     total_pages = engine.get_page_count()
    """

    def __init__(self, file_path: str, config: Optional[ExtractionConfig] = None):
        """
        Note: Document is not opened until entering context manager (__enter__).

        Args:
            file_path: Path to PDF file to process
            config: Extraction configuration (uses defaults if None)

        Raises:
            PdfValidationError: If configuration is invalid
        """
        self.file_path = file_path
        self.config = config or ExtractionConfig.default()

        if not self.config.validate():
            raise PdfValidationError("Invalid extraction configuration")

        self.prefix = self.config.resolve_prefix(file_path)

        self._pdf: Optional[pikepdf.Pdf] = None
        self._is_open = False
        self._page_count: Optional[int] = None

        self.materializer = ImageMaterializer(self, self.config.materializer_options())

        logger.debug(f"ExtractionEngine initialized for: {Path(file_path).name}")

    def __enter__(self) -> 'ExtractionEngine':
        """
        Open the PDF and initialize the materializer.

        Raises:
            PdfValidationError: Input or output environment rejected
            DocumentOpenError: PDF cannot be opened
            DocumentAccessError: Extraction is not permitted
        """
        try:
            logger.info(f"Opening PDF: {self.file_path}")

            if self.config.validate_on_open:
                self._validate_pdf_file()

            self._pdf = open_document(self.file_path, self.config.password)
            check_extraction_permission(self._pdf)

            self._page_count = len(self._pdf.pages)
            self._is_open = True
            self.materializer.initialize()

            logger.info(f"PDF opened successfully: {self._page_count} pages")
            return self

        except Exception:
            self._cleanup_resources()
            raise

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Close the document. Resources are cleaned up even if an exception occurred.
        """
        logger.debug("Closing extraction engine")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during extraction: {exc_val}")

        # Don't suppress exceptions
        return False

    def _validate_pdf_file(self) -> None:
        """
        Raises:
            PdfValidationError: If validation fails
        """
        output_dir = os.path.dirname(self.prefix)
        results = comprehensive_pdf_validation(
            self.file_path, output_dir, self.config.max_file_size_mb
        )
        if not results['is_valid']:
            raise PdfValidationError("; ".join(results['errors']))

    def _cleanup_resources(self) -> None:
        """Idempotent; safe to call multiple times."""
        self.materializer.cleanup()

        if self._pdf is not None:
            try:
                self._pdf.close()
            except Exception as e:
                logger.warning(f"Error closing pikepdf document: {e}")
            finally:
                self._pdf = None

        self._is_open = False

    # Public API

    def get_page_count(self) -> int:
        if not self._is_open:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._page_count

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        if not self._is_open or self._pdf is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pdf

    def extract_images(self) -> ExtractionResult:
        """
        Extract every image of the configured page range.

        Each call is an independent run with its own counter and
        deduplication state.
        """
        pdf = self.pikepdf_document
        page_numbers = self.config.page_range.to_page_numbers(self._page_count)
        context = ExtractionContext(self.prefix)

        try:
            for page_number in page_numbers:
                device = ImageExtractionDevice(pdf, context, self.materializer, page_number)
                try:
                    device.extract(pdf.pages[page_number - 1])
                except pikepdf.PdfError as e:
                    logger.error(f"Error processing page {page_number}: {e}")
                    # Continue processing other pages even if one fails
                    continue
                logger.debug(f"Page {page_number}: {device.images_painted} new image(s)")
        except Exception:
            if self.config.remove_partial_output:
                self._remove_written_files(context)
            raise

        logger.info(
            f"Extracted {len(context.images)} image(s) from {len(page_numbers)} page(s)"
            + (f", {context.failed_images} skipped" if context.failed_images else "")
        )
        return context.to_result(self._page_count, len(page_numbers))

    @staticmethod
    def _remove_written_files(context: ExtractionContext) -> None:
        for file_name in context.written_files:
            try:
                os.remove(file_name)
                logger.debug(f"Removed partial output {file_name}")
            except OSError as e:
                logger.warning(f"Could not remove {file_name}: {e}")

    # Status and Debugging

    @property
    def is_open(self) -> bool:
        return self._is_open

    def get_status(self) -> Dict[str, Any]:
        return {
            'is_open': self._is_open,
            'file_path': self.file_path,
            'prefix': self.prefix,
            'page_count': self._page_count,
            'config': self.config.to_dict(),
        }

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        pages = f"{self._page_count} pages" if self._page_count else "unknown pages"
        return f"ExtractionEngine({Path(self.file_path).name}, {status}, {pages})"
