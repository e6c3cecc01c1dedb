"""
Constants used internally by the collage compositor.

These are implementation-level values that are not exposed through
config files or CLI arguments.
"""

# Color modes
COLOR_MODE_RGB = "RGB"
COLOR_MODE_RGBA = "RGBA"
COLOR_MODE_MASK = "L"

# Fully opaque / transparent mask values
MASK_OPAQUE = 255
MASK_CLEAR = 0

# Export format (lossless)
EXPORT_FORMAT = "PNG"
EXPORT_SUFFIX = ".png"

# Fallback directory when the requested output directory is unusable
FALLBACK_OUTPUT_DIR = "dream_collage_output"

# Prefix of data URLs produced by the generation service
DATA_URL_PREFIX = "data:"
DATA_URL_BASE64_MARKER = ";base64,"

# Inputs larger than this on either side are logged as slow to decode
MAX_SOURCE_DIMENSION = 4096

# Font used for the title label, with Pillow's default as fallback
TITLE_FONT_FILE = "DejaVuSans-Bold.ttf"
