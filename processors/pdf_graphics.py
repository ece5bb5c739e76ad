import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pikepdf

from constants.pdf_keys import (
    KEY_COLOR_SPACE, KEY_SOFT_MASK,
    CS_DEVICE_GRAY, CS_DEVICE_RGB, CS_DEVICE_CMYK, CS_PATTERN,
)
from utils.pdf_transforms import concatenate

logger = logging.getLogger(__name__)

DEVICE_COLOR_SPACES = {CS_DEVICE_GRAY, CS_DEVICE_RGB, CS_DEVICE_CMYK, CS_PATTERN}

# Initial components per color space family (PDF spec 8.6.8)
DEFAULT_COMPONENTS = {
    CS_DEVICE_GRAY: (0.0,),
    CS_DEVICE_RGB: (0.0, 0.0, 0.0),
    CS_DEVICE_CMYK: (0.0, 0.0, 0.0, 1.0),
}


def normalize_operator(operator) -> bytes:
    op_name = operator.operator
    if isinstance(op_name, bytes):
        return op_name
    return str(op_name).encode('latin-1')


def color_space_family(color_space: Any) -> Optional[str]:
    """Name of a color space family: the name itself or the first array element."""
    if color_space is None:
        return None
    if isinstance(color_space, pikepdf.Array):
        return str(color_space[0]) if len(color_space) else None
    return str(color_space)


@dataclass
class PdfColor:
    """A fill or stroke color: its color space, components and pattern name."""
    color_space: Any = CS_DEVICE_GRAY
    components: Tuple[float, ...] = (0.0,)
    pattern_name: Optional[str] = None

    @property
    def is_pattern(self) -> bool:
        return color_space_family(self.color_space) == CS_PATTERN


class GraphicsState:
    """Graphics state parameters tracked while looking for images."""
    __slots__ = (
        "ctm",
        "base_matrix",
        "fill_color",
        "stroke_color",
        "soft_mask",
        "text_render_mode",
        "resources",
    )

    def __init__(self, resources=None, ctm: Optional[np.ndarray] = None):
        self.ctm = ctm if ctm is not None else np.identity(3, dtype=float)
        # Pattern space of the content stream being interpreted
        self.base_matrix = self.ctm.copy()
        self.fill_color = PdfColor()
        self.stroke_color = PdfColor()
        self.soft_mask = None
        self.text_render_mode = 0
        self.resources = resources

    def copy(self) -> "GraphicsState":
        st = GraphicsState(self.resources, self.ctm.copy())
        st.base_matrix = self.base_matrix.copy()
        st.fill_color = self.fill_color
        st.stroke_color = self.stroke_color
        st.soft_mask = self.soft_mask
        st.text_render_mode = self.text_render_mode
        return st

    def apply_ctm(self, operands: Sequence) -> None:
        self.ctm = concatenate(self.ctm, operands)

    # --- color handling ---

    def _resolve_color_space(self, name: str) -> Any:
        if name in DEVICE_COLOR_SPACES:
            return name
        if self.resources is not None and KEY_COLOR_SPACE in self.resources:
            resolved = self.resources[KEY_COLOR_SPACE].get(name)
            if resolved is not None:
                return resolved
        logger.debug(f"Unknown color space resource {name}, keeping the name")
        return name

    def set_color_space(self, is_stroke: bool, name: str) -> None:
        space = self._resolve_color_space(name)
        components = DEFAULT_COMPONENTS.get(color_space_family(space), ())
        color = PdfColor(space, components, None)
        if is_stroke:
            self.stroke_color = color
        else:
            self.fill_color = color

    def set_color(self, is_stroke: bool, operands: List[Any]) -> None:
        """sc/scn/SC/SCN: numeric components, optionally followed by a pattern name."""
        current = self.stroke_color if is_stroke else self.fill_color
        pattern_name = None
        numbers = operands
        if operands and isinstance(operands[-1], pikepdf.Name):
            pattern_name = str(operands[-1])
            numbers = operands[:-1]
        color = PdfColor(current.color_space, tuple(float(v) for v in numbers), pattern_name)
        if is_stroke:
            self.stroke_color = color
        else:
            self.fill_color = color

    def set_device_color(self, is_stroke: bool, color_space: str, operands: List[Any]) -> None:
        color = PdfColor(color_space, tuple(float(v) for v in operands), None)
        if is_stroke:
            self.stroke_color = color
        else:
            self.fill_color = color

    def apply_ext_gstate(self, ext_gstate) -> None:
        """Copy the parameters of an ExtGState dictionary that matter here."""
        if KEY_SOFT_MASK in ext_gstate:
            smask = ext_gstate[KEY_SOFT_MASK]
            self.soft_mask = smask if isinstance(smask, pikepdf.Dictionary) else None


class GraphicsStateStack:
    """q/Q stack of graphics state frames for one interpreter run."""

    def __init__(self, initial: GraphicsState):
        self.current = initial
        self._stack: List[GraphicsState] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    def save(self) -> None:
        self._stack.append(self.current.copy())

    def restore(self) -> None:
        if self._stack:
            self.current = self._stack.pop()
        else:
            logger.debug("Unbalanced Q operator ignored")

    @contextmanager
    def derived(self, ctm: np.ndarray, resources=None) -> Iterator[GraphicsState]:
        """
        Push a frame for a nested content stream (form, pattern or soft mask).

        The frame starts from a copy of the current state with the given CTM,
        which also becomes the pattern space of the nested stream. Every frame
        pushed inside, balanced or not, is discarded when the block exits.
        """
        saved_depth = len(self._stack)
        self._stack.append(self.current)
        frame = self.current.copy()
        frame.ctm = ctm
        frame.base_matrix = ctm.copy()
        if resources is not None:
            frame.resources = resources
        self.current = frame
        try:
            yield frame
        finally:
            del self._stack[saved_depth + 1:]
            self.current = self._stack.pop()
