"""
PDF Image Extraction Device

Walks a page's content streams with pikepdf, tracking the graphics state, and
reports every image that gets painted: image XObjects, inline images, images
inside form XObjects, tiling patterns and soft mask transparency groups.
"""

import logging
from typing import Any, List, Optional, Set, Tuple

import numpy as np
import pikepdf
from pikepdf import parse_content_stream

from constants.pdf_keys import (
    KEY_RESOURCES, KEY_XOBJECT, KEY_EXT_GSTATE, KEY_SUBTYPE, KEY_MATRIX,
    KEY_SOFT_MASK, KEY_GROUP, VAL_IMAGE, VAL_FORM,
)
from constants.pdf_operators import (
    OP_SAVE_STATE, OP_RESTORE_STATE, OP_CTM, OP_SET_GRAPHICS_STATE_PARAMS,
    OP_SET_COLOR_SPACE_STROKE, OP_SET_COLOR_SPACE_FILL,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_STROKE_N, OP_SET_COLOR_FILL, OP_SET_COLOR_FILL_N,
    DEVICE_COLOR_OPS, STROKE_COLOR_OPS,
    OP_SET_TEXT_RENDER, TEXT_SHOWING_OPS, TEXT_RENDER_FILL_MODES, TEXT_RENDER_STROKE_MODES,
    OP_DO_XOBJECT, OP_INLINE_IMAGE, STROKE_PAINT_OPS, FILL_PAINT_OPS,
)
from processors.pattern_resolver import TilingPattern, resolve_pattern
from processors.pdf_graphics import (
    GraphicsState, GraphicsStateStack, PdfColor, normalize_operator,
)
from processors.pdf_objects import PdfImageObject
from utils.pdf_transforms import IDENTITY_MATRIX, matrix_from_operands

logger = logging.getLogger(__name__)

SET_COLOR_OPS = {OP_SET_COLOR_STROKE, OP_SET_COLOR_STROKE_N, OP_SET_COLOR_FILL, OP_SET_COLOR_FILL_N}


def _has_glyphs(operands: List[Any]) -> bool:
    """True when a text showing operator has at least one byte to show."""
    for operand in operands:
        if isinstance(operand, pikepdf.String) and len(bytes(operand)) > 0:
            return True
        if isinstance(operand, pikepdf.Array) and _has_glyphs(list(operand)):
            return True
    return False


class ImageExtractionDevice:
    """
    Content stream interpreter that hands painted images to a materializer.

    One device processes one page. Images are deduplicated through the shared
    extraction context before they are materialized.
    """

    def __init__(self, pdf: pikepdf.Pdf, context, materializer, page_number: int = 1):
        self.pdf = pdf
        self.context = context
        self.materializer = materializer
        self.page_number = page_number
        self.gstack: Optional[GraphicsStateStack] = None
        # Streams currently being interpreted, keyed by object/generation
        self._active_streams: Set[Tuple[int, int]] = set()
        self.images_painted = 0

    @property
    def gstate(self) -> GraphicsState:
        return self.gstack.current

    # --- Entry point ---

    def extract(self, page) -> None:
        """Process a page, then the soft mask groups of its ExtGState resources."""
        resources = page.obj.get(KEY_RESOURCES)
        self.gstack = GraphicsStateStack(GraphicsState(resources=resources))

        try:
            ops = parse_content_stream(page)
        except pikepdf.PdfError as e:
            logger.warning(f"Content stream parse error on page {self.page_number}: {e}")
            ops = []
        self._process_operators(ops)

        if resources is not None:
            self._process_soft_masks(resources)

    # --- Operator dispatch ---

    def _process_stream(self, stream) -> None:
        try:
            ops = parse_content_stream(stream)
        except pikepdf.PdfError as e:
            logger.warning(f"Content stream parse error on page {self.page_number}: {e}")
            return
        self._process_operators(ops)

    def _process_operators(self, ops) -> None:
        for inst in ops:
            op = normalize_operator(inst)
            try:
                self._dispatch(op, inst)
            except (ValueError, TypeError, IndexError, KeyError) as e:
                logger.debug(f"Ignoring malformed {op.decode('latin-1')} operator: {e}")

    def _dispatch(self, op: bytes, inst) -> None:
        operands = list(inst.operands) if op != OP_INLINE_IMAGE else []

        if op == OP_SAVE_STATE:
            self.gstack.save()
        elif op == OP_RESTORE_STATE:
            self.gstack.restore()
        elif op == OP_CTM and len(operands) == 6:
            self.gstate.apply_ctm(operands)
        elif op == OP_SET_GRAPHICS_STATE_PARAMS and operands:
            self._set_ext_gstate(str(operands[0]))

        elif op in (OP_SET_COLOR_SPACE_STROKE, OP_SET_COLOR_SPACE_FILL) and operands:
            self.gstate.set_color_space(op in STROKE_COLOR_OPS, str(operands[0]))
        elif op in SET_COLOR_OPS:
            self.gstate.set_color(op in STROKE_COLOR_OPS, operands)
        elif op in DEVICE_COLOR_OPS:
            self.gstate.set_device_color(op in STROKE_COLOR_OPS, DEVICE_COLOR_OPS[op], operands)

        elif op == OP_SET_TEXT_RENDER and operands:
            self.gstate.text_render_mode = int(operands[0])
        elif op in TEXT_SHOWING_OPS:
            if _has_glyphs(operands):
                self._show_text()

        elif op in STROKE_PAINT_OPS:
            self._process_color(self.gstate.stroke_color)
        elif op in FILL_PAINT_OPS:
            # Fill-and-stroke operators are traced through the fill color only
            self._process_color(self.gstate.fill_color)

        elif op == OP_DO_XOBJECT and operands:
            self._do_xobject(str(operands[0]))
        elif op == OP_INLINE_IMAGE:
            self._draw_inline_image(inst.iimage)

    # --- Graphics state ---

    def _set_ext_gstate(self, name: str) -> None:
        resources = self.gstate.resources
        if resources is None or KEY_EXT_GSTATE not in resources:
            return
        ext_gstate = resources[KEY_EXT_GSTATE].get(name)
        if isinstance(ext_gstate, pikepdf.Dictionary):
            self.gstate.apply_ext_gstate(ext_gstate)

    # --- Color and patterns ---

    def _show_text(self) -> None:
        mode = self.gstate.text_render_mode
        if mode in TEXT_RENDER_FILL_MODES:
            self._process_color(self.gstate.fill_color)
        if mode in TEXT_RENDER_STROKE_MODES:
            self._process_color(self.gstate.stroke_color)

    def _process_color(self, color: PdfColor) -> None:
        """Descend into the content stream of a tiling pattern color."""
        pattern = resolve_pattern(color, self.gstate.resources)
        if isinstance(pattern, TilingPattern):
            self._process_tiling_pattern(pattern)

    def _process_tiling_pattern(self, pattern: TilingPattern) -> None:
        pattern_ctm = np.dot(self.gstate.base_matrix, matrix_from_operands(pattern.matrix))
        self._run_nested(pattern.stream, pattern_ctm, pattern.resources)

    # --- XObjects ---

    def _do_xobject(self, name: str) -> None:
        resources = self.gstate.resources
        if resources is None or KEY_XOBJECT not in resources:
            logger.debug(f"XObject {name} used without an /XObject resource")
            return
        xobj = resources[KEY_XOBJECT].get(name)
        if not isinstance(xobj, pikepdf.Stream):
            logger.debug(f"XObject {name} not found on page {self.page_number}")
            return

        subtype = xobj.get(KEY_SUBTYPE)
        if subtype == VAL_IMAGE:
            self._draw_image(PdfImageObject(self.pdf, xobj, name=name))
        elif subtype == VAL_FORM:
            self._show_form(xobj)

    def _show_form(self, form) -> None:
        form_ctm = np.dot(self.gstate.ctm, matrix_from_operands(form.get(KEY_MATRIX, IDENTITY_MATRIX)))
        self._run_nested(form, form_ctm, form.get(KEY_RESOURCES))

    def _draw_inline_image(self, inline_image) -> None:
        try:
            image = PdfImageObject.from_inline(self.pdf, inline_image, self.gstate.resources)
        except (pikepdf.PdfError, ValueError, TypeError) as e:
            logger.warning(f"Skipping unreadable inline image on page {self.page_number}: {e}")
            return
        self._draw_image(image)

    def _draw_image(self, image: PdfImageObject) -> None:
        if image.is_stencil:
            # A stencil mask paints with the fill color, which may be a pattern
            self._process_color(self.gstate.fill_color)

        identity = image.identity
        if identity is not None:
            if self.context.deduplicator.seen(identity):
                logger.debug(f"Image {image.name} {identity} already extracted")
                return
            self.context.deduplicator.mark(identity)

        self.images_painted += 1
        self.materializer.materialize(image, self.gstate.ctm, self.context, self.page_number)

    # --- Soft masks ---

    def _process_soft_masks(self, resources) -> None:
        """Interpret the transparency group of every soft mask the page declares."""
        if KEY_EXT_GSTATE not in resources:
            return
        ext_gstates = resources[KEY_EXT_GSTATE]
        for name in list(ext_gstates.keys()):
            ext_gstate = ext_gstates.get(name)
            if not isinstance(ext_gstate, pikepdf.Dictionary):
                continue
            soft_mask = ext_gstate.get(KEY_SOFT_MASK)
            if not isinstance(soft_mask, pikepdf.Dictionary):
                continue
            group = soft_mask.get(KEY_GROUP)
            if not isinstance(group, pikepdf.Stream):
                continue

            logger.debug(f"Processing soft mask group of {name} on page {self.page_number}")
            self.gstate.apply_ext_gstate(ext_gstate)
            group_ctm = np.dot(self.gstate.ctm, matrix_from_operands(group.get(KEY_MATRIX, IDENTITY_MATRIX)))
            self._run_nested(group, group_ctm, group.get(KEY_RESOURCES))

    # --- Nested content streams ---

    def _run_nested(self, stream, ctm: np.ndarray, resources) -> None:
        """Interpret a form, pattern or group stream in its own state frame."""
        objgen = tuple(stream.objgen)
        if objgen != (0, 0):
            if objgen in self._active_streams:
                logger.warning(f"Skipping recursive content stream {objgen} on page {self.page_number}")
                return
            self._active_streams.add(objgen)

        try:
            with self.gstack.derived(ctm, resources):
                self._process_stream(stream)
        finally:
            self._active_streams.discard(objgen)
