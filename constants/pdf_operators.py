"""
PDF Operator Constants

Content stream operators recognised by the image extraction device, grouped
by the kind of work the device does for them.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state
OP_CTM = b'cm'                       # Modify current transformation matrix
OP_SET_GRAPHICS_STATE_PARAMS = b'gs' # Set parameters from graphics state parameter dict

# ==============================================================================
# Color Operators (PDF spec 8.6.8)
# ==============================================================================
# Stroke
OP_SET_GRAY_STROKE = b'G'
OP_SET_RGB_COLOR_STROKE = b'RG'
OP_SET_CMYK_COLOR_STROKE = b'K'
OP_SET_COLOR_STROKE = b'SC'
OP_SET_COLOR_STROKE_N = b'SCN'
OP_SET_COLOR_SPACE_STROKE = b'CS'

# Fill (Non-Stroke)
OP_SET_GRAY_FILL = b'g'
OP_SET_RGB_COLOR_FILL = b'rg'
OP_SET_CMYK_COLOR_FILL = b'k'
OP_SET_COLOR_FILL = b'sc'
OP_SET_COLOR_FILL_N = b'scn'
OP_SET_COLOR_SPACE_FILL = b'cs'

# Device color operators and the color space each one implies
DEVICE_COLOR_OPS = {
    OP_SET_GRAY_STROKE: '/DeviceGray',
    OP_SET_GRAY_FILL: '/DeviceGray',
    OP_SET_RGB_COLOR_STROKE: '/DeviceRGB',
    OP_SET_RGB_COLOR_FILL: '/DeviceRGB',
    OP_SET_CMYK_COLOR_STROKE: '/DeviceCMYK',
    OP_SET_CMYK_COLOR_FILL: '/DeviceCMYK',
}

STROKE_COLOR_OPS = {
    OP_SET_GRAY_STROKE, OP_SET_RGB_COLOR_STROKE, OP_SET_CMYK_COLOR_STROKE,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_STROKE_N, OP_SET_COLOR_SPACE_STROKE,
}

# ==============================================================================
# Text Operators (PDF spec 9.3, 9.4.3)
# ==============================================================================
OP_SET_TEXT_RENDER = b'Tr'        # Set text rendering mode

OP_SHOW_TEXT = b'Tj'
OP_SHOW_TEXT_ARRAY = b'TJ'
OP_NEXT_LINE_SHOW_TEXT = b"'"
OP_SET_SPACING_SHOW_TEXT = b'"'

TEXT_SHOWING_OPS = {OP_SHOW_TEXT, OP_SHOW_TEXT_ARRAY, OP_NEXT_LINE_SHOW_TEXT, OP_SET_SPACING_SHOW_TEXT}

# Text rendering modes (PDF spec table 106)
TEXT_RENDER_FILL_MODES = {0, 2, 4, 6}
TEXT_RENDER_STROKE_MODES = {1, 2, 5, 6}

# ==============================================================================
# XObject and Inline Image Operators (PDF spec 8.8, 8.9.7)
# ==============================================================================
OP_DO_XOBJECT = b'Do'
OP_INLINE_IMAGE = b'INLINE IMAGE'   # Synthetic operator pikepdf emits for BI ... ID ... EI

# ==============================================================================
# Path Painting Operators (PDF spec 8.5.3)
# ==============================================================================
OP_STROKE = b'S'
OP_CLOSE_STROKE = b's'
OP_FILL = b'f'
OP_FILL_OBSOLETE = b'F'
OP_FILL_EVEN_ODD = b'f*'
OP_FILL_STROKE = b'B'
OP_FILL_STROKE_EVEN_ODD = b'B*'
OP_CLOSE_FILL_STROKE = b'b'
OP_CLOSE_FILL_STROKE_EVEN_ODD = b'b*'

# Painting with the stroking color only
STROKE_PAINT_OPS = {OP_STROKE, OP_CLOSE_STROKE}

# Painting with the non-stroking color (fill-and-stroke paints with the fill color)
FILL_PAINT_OPS = {
    OP_FILL, OP_FILL_OBSOLETE, OP_FILL_EVEN_ODD, OP_FILL_STROKE,
    OP_FILL_STROKE_EVEN_ODD, OP_CLOSE_FILL_STROKE, OP_CLOSE_FILL_STROKE_EVEN_ODD
}
