"""
PDF Dictionary Keys and Name Constants
"""

# Resource Dictionary Keys
KEY_RESOURCES = "/Resources"
KEY_XOBJECT = "/XObject"
KEY_EXT_GSTATE = "/ExtGState"
KEY_PATTERN = "/Pattern"
KEY_COLOR_SPACE = "/ColorSpace"

# Object Types and Subtypes
KEY_SUBTYPE = "/Subtype"
VAL_IMAGE = "/Image"
VAL_FORM = "/Form"

# Image / Form Properties
KEY_WIDTH = "/Width"
KEY_HEIGHT = "/Height"
KEY_BITS_PER_COMPONENT = "/BitsPerComponent"
KEY_IMAGE_MASK = "/ImageMask"
KEY_MASK = "/Mask"
KEY_DECODE = "/Decode"
KEY_FILTER = "/Filter"
KEY_DECODE_PARMS = "/DecodeParms"
KEY_MATRIX = "/Matrix"

# Graphics State Parameter Keys (ExtGState)
KEY_SOFT_MASK = "/SMask"         # Soft mask (also the image soft mask key)
KEY_GROUP = "/G"                 # Transparency group of a soft mask dictionary

# Pattern Keys
KEY_PATTERN_TYPE = "/PatternType"
PATTERN_TYPE_TILING = 1
PATTERN_TYPE_SHADING = 2

# Color Space Names
CS_DEVICE_GRAY = "/DeviceGray"
CS_DEVICE_RGB = "/DeviceRGB"
CS_DEVICE_CMYK = "/DeviceCMYK"
CS_PATTERN = "/Pattern"

# Image Filter Names (full names and inline image abbreviations)
FILTER_DCT = "/DCTDecode"
FILTER_JPX = "/JPXDecode"
FILTER_JBIG2 = "/JBIG2Decode"
FILTER_CCITT = "/CCITTFaxDecode"
FILTER_FLATE = "/FlateDecode"
FILTER_LZW = "/LZWDecode"
FILTER_RUN_LENGTH = "/RunLengthDecode"

FILTER_ABBREVIATIONS = {
    "/DCT": FILTER_DCT,
    "/CCF": FILTER_CCITT,
    "/AHx": "/ASCIIHexDecode",
    "/A85": "/ASCII85Decode",
    "/LZW": FILTER_LZW,
    "/Fl": FILTER_FLATE,
    "/RL": FILTER_RUN_LENGTH,
}

# Inline image dictionary key abbreviations
INLINE_KEY_ABBREVIATIONS = {
    "/W": KEY_WIDTH,
    "/H": KEY_HEIGHT,
    "/BPC": KEY_BITS_PER_COMPONENT,
    "/CS": KEY_COLOR_SPACE,
    "/F": KEY_FILTER,
    "/DP": KEY_DECODE_PARMS,
    "/IM": KEY_IMAGE_MASK,
    "/D": KEY_DECODE,
    "/I": "/Interpolate",
}

# Inline image color space abbreviations
COLOR_SPACE_ABBREVIATIONS = {
    "/G": CS_DEVICE_GRAY,
    "/RGB": CS_DEVICE_RGB,
    "/CMYK": CS_DEVICE_CMYK,
    "/I": "/Indexed",
}

JPEG_FILTERS = (FILTER_DCT, "/DCT")
JPX_FILTERS = (FILTER_JPX,)

# Intrinsic file suffix of each image filter
FILTER_SUFFIXES = {
    FILTER_DCT: "jpg",
    FILTER_JPX: "jpx",
    FILTER_JBIG2: "jb2",
    FILTER_CCITT: "tiff",
    FILTER_FLATE: "png",
    FILTER_LZW: "png",
    FILTER_RUN_LENGTH: "png",
}

# Lookup order for the suffix of a filter chain
SUFFIX_FILTER_ORDER = (
    FILTER_DCT, FILTER_JPX, FILTER_CCITT,
    FILTER_FLATE, FILTER_LZW, FILTER_RUN_LENGTH,
    FILTER_JBIG2,
)
