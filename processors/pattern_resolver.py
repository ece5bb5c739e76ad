"""Resolve pattern colors to the pattern objects they name."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

import pikepdf

from constants.pdf_keys import (
    KEY_PATTERN, KEY_PATTERN_TYPE, KEY_RESOURCES, KEY_MATRIX,
    PATTERN_TYPE_TILING, PATTERN_TYPE_SHADING,
)
from processors.pdf_graphics import PdfColor
from utils.pdf_transforms import IDENTITY_MATRIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TilingPattern:
    """Pattern type 1: a content stream painted repeatedly."""
    name: str
    stream: Any
    resources: Any
    matrix: Tuple[float, ...]


@dataclass(frozen=True)
class ShadingPattern:
    """Pattern type 2: a smooth shading, never contains images."""
    name: str


ResolvedPattern = Union[TilingPattern, ShadingPattern]


def resolve_pattern(color: PdfColor, resources) -> Optional[ResolvedPattern]:
    """Look up the pattern a color refers to, or None for plain colors."""
    if not color.is_pattern or not color.pattern_name:
        return None
    if resources is None or KEY_PATTERN not in resources:
        logger.debug(f"Pattern {color.pattern_name} used without a /Pattern resource")
        return None

    pattern = resources[KEY_PATTERN].get(color.pattern_name)
    if pattern is None:
        logger.debug(f"Pattern {color.pattern_name} not found in resources")
        return None

    pattern_type = int(pattern.get(KEY_PATTERN_TYPE, 0))
    if pattern_type == PATTERN_TYPE_TILING and isinstance(pattern, pikepdf.Stream):
        matrix = tuple(float(v) for v in pattern.get(KEY_MATRIX, IDENTITY_MATRIX))
        return TilingPattern(
            name=color.pattern_name,
            stream=pattern,
            resources=pattern.get(KEY_RESOURCES),
            matrix=matrix,
        )
    if pattern_type == PATTERN_TYPE_SHADING:
        return ShadingPattern(name=color.pattern_name)

    logger.debug(f"Unsupported pattern type {pattern_type} for {color.pattern_name}")
    return None
