"""
Configuration system for the image extraction engine.

Provides structured configuration using dataclasses with clear defaults,
validation, and conversion to and from plain dicts (request forms, env).
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
import logging
import os

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_prefix(file_path: str) -> str:
    """Output prefix derived from the input path: the path minus its last four characters."""
    if len(file_path) > 4:
        return file_path[:-4]
    return file_path


@dataclass
class ProcessorOptions:
    """
    Base class for processor-specific configuration options.
    """
    enabled: bool = True

    def validate(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {'enabled': self.enabled}


@dataclass
class MaterializerOptions(ProcessorOptions):
    """
    Output format switches for the image materializer.
    """
    direct_jpeg: bool = False  # Copy JPEG streams even for non-device color spaces
    no_color_convert: bool = False  # Keep the image's own color space
    include_density: bool = False  # Always re-encode so the DPI tag can be written

    def validate(self) -> bool:
        if self.direct_jpeg and self.include_density:
            # Density wins: passthrough is disabled whenever density is requested
            logger.debug("direct_jpeg has no effect while include_density is set")
        return super().validate()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'direct_jpeg': self.direct_jpeg,
            'no_color_convert': self.no_color_convert,
            'include_density': self.include_density,
        })
        return base_dict


@dataclass
class PageRange:
    """
    Range of pages to process, 1-based and inclusive.

    Example:
        >>> PageRange(start=2, end=5).to_page_numbers(10)
        [2, 3, 4, 5]
        >>> PageRange(start=5).to_page_numbers(7)
        [5, 6, 7]
    """

    start: int = 1
    end: Optional[int] = None  # None means "to end of document"

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"start page must be >= 1, got {self.start}")

        if self.end is not None:
            if self.end < 1:
                raise ValueError(f"end page must be >= 1, got {self.end}")
            if self.end < self.start:
                raise ValueError(
                    f"end page ({self.end}) must be >= start page ({self.start})"
                )

    def to_page_numbers(self, total_pages: int) -> List[int]:
        """Pages of the range that exist in a document of total_pages pages."""
        if total_pages < 1 or self.start > total_pages:
            return []

        end = total_pages if self.end is None else min(self.end, total_pages)
        return list(range(self.start, end + 1))

    @classmethod
    def all_pages(cls) -> 'PageRange':
        return cls(start=1, end=None)

    @classmethod
    def single_page(cls, page_num: int) -> 'PageRange':
        return cls(start=page_num, end=page_num)

    def __repr__(self) -> str:
        if self.end is None:
            return f"PageRange({self.start}→end)"
        elif self.start == self.end:
            return f"PageRange(page {self.start})"
        else:
            return f"PageRange({self.start}→{self.end})"


@dataclass
class ExtractionConfig:
    """
    Central configuration for an extraction run.

    Example:
        >>> config = ExtractionConfig(prefix="out/scan", direct_jpeg=True)
        >>> with ExtractionEngine("scan.pdf", config=config) as engine:
        ...     result = engine.extract_images()
    """

    # Document access
    password: Optional[str] = None

    # Output naming, None derives the prefix from the input path
    prefix: Optional[str] = None

    # Format switches
    direct_jpeg: bool = False
    no_color_convert: bool = False
    include_density: bool = False

    page_range: PageRange = field(default_factory=PageRange.all_pages)

    # Validation
    validate_on_open: bool = True
    max_file_size_mb: int = 200

    # Delete written images when the run fails as a whole
    remove_partial_output: bool = False

    # Logging
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper())

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if self.prefix is not None and not self.prefix:
            logger.error("prefix must not be empty")
            return False

        if self.log_level.upper() not in LOG_LEVELS:
            logger.error(f"log_level must be one of {', '.join(LOG_LEVELS)}")
            return False

        return self.materializer_options().validate()

    def resolve_prefix(self, file_path: str) -> str:
        return self.prefix if self.prefix else default_prefix(file_path)

    def materializer_options(self) -> MaterializerOptions:
        return MaterializerOptions(
            direct_jpeg=self.direct_jpeg,
            no_color_convert=self.no_color_convert,
            include_density=self.include_density,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        The password is never included.
        """
        return {
            'prefix': self.prefix,
            'direct_jpeg': self.direct_jpeg,
            'no_color_convert': self.no_color_convert,
            'include_density': self.include_density,
            'start_page': self.page_range.start,
            'end_page': self.page_range.end,
            'validate_on_open': self.validate_on_open,
            'max_file_size_mb': self.max_file_size_mb,
            'remove_partial_output': self.remove_partial_output,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ExtractionConfig':
        """
        Create ExtractionConfig from dictionary.

        start_page/end_page become the page range. Unknown keys are
        ignored with a warning.
        """
        valid_keys = {
            'password', 'prefix', 'direct_jpeg', 'no_color_convert',
            'include_density', 'validate_on_open', 'max_file_size_mb',
            'remove_partial_output', 'log_level',
        }

        filtered_config = {}
        for key, value in config.items():
            if key in valid_keys:
                filtered_config[key] = value
            elif key not in ('start_page', 'end_page'):
                logger.warning(f"Unknown config key '{key}' will be ignored")

        start = config.get('start_page') or 1
        end = config.get('end_page')
        filtered_config['page_range'] = PageRange(start=int(start), end=int(end) if end else None)

        return cls(**filtered_config)

    @classmethod
    def default(cls) -> 'ExtractionConfig':
        return cls()

    def __repr__(self) -> str:
        return (
            f"ExtractionConfig("
            f"prefix={self.prefix!r}, "
            f"directJPEG={self.direct_jpeg}, "
            f"noColorConvert={self.no_color_convert}, "
            f"includeDensity={self.include_density}, "
            f"pages={self.page_range!r})"
        )
