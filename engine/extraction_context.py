"""
Per-run extraction state: image deduplication, output naming and results.

A new context is created for every extraction run and shared by all pages
of that run, so an image painted on several pages is written once.
"""

import logging
from typing import List, Optional, Set, Tuple

from models.pdf_types import ExtractedImage, ExtractionResult

logger = logging.getLogger(__name__)

ObjectIdentity = Tuple[int, int]


class ImageDeduplicator:
    """Set of object identities already handed to the materializer."""

    def __init__(self):
        self._seen: Set[ObjectIdentity] = set()

    def seen(self, identity: ObjectIdentity) -> bool:
        return identity in self._seen

    def mark(self, identity: ObjectIdentity) -> None:
        self._seen.add(identity)

    def __len__(self) -> int:
        return len(self._seen)


class ExtractionContext:
    """
    Counter, deduplicator and results of one extraction run.

    Names are "<prefix>-<n>" with n starting at 1. The counter advances when
    a name is handed out, so an image that later fails leaves a gap.
    """

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.image_counter = 1
        self.deduplicator = ImageDeduplicator()
        self.images: List[ExtractedImage] = []
        self.failed_images = 0

    def next_image_name(self) -> str:
        name = f"{self.prefix}-{self.image_counter}"
        self.image_counter += 1
        return name

    def record(self, entry: ExtractedImage) -> None:
        self.images.append(entry)

    def record_failure(self, name: str, reason: Optional[str] = None) -> None:
        self.failed_images += 1
        logger.debug(f"Image {name} recorded as failed: {reason}")

    @property
    def written_files(self) -> List[str]:
        return [entry.fileName for entry in self.images]

    def to_result(self, total_pages: int, pages_processed: int) -> ExtractionResult:
        return ExtractionResult(
            images=list(self.images),
            totalPages=total_pages,
            pagesProcessed=pages_processed,
            failedImages=self.failed_images,
        )
