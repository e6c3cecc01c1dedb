"""Shared default values for user-facing configuration settings."""

# Grid: 2x2 collage on a 1024 px square canvas
DEFAULT_CANVAS_SIZE = 1024
DEFAULT_ROWS = 2
DEFAULT_COLS = 2
DEFAULT_GAP = 10

# Appearance
DEFAULT_BACKGROUND = (245, 245, 245)
DEFAULT_CORNER_RADIUS = 18.0
DEFAULT_BORDER_COLOR = (0, 0, 0, 31)       # rgba(0, 0, 0, 0.12)
DEFAULT_BORDER_WIDTH = 2
DEFAULT_TITLE = "Dream Collage"
DEFAULT_TITLE_POSITION = (24, 40)          # left edge, text baseline
DEFAULT_TITLE_PX = 22
DEFAULT_TITLE_COLOR = (0, 0, 0, 179)       # rgba(0, 0, 0, 0.7)

# Loader
DEFAULT_MAX_WORKERS = 4

# Export
DEFAULT_EXPORT_FILENAME = "dream-collage.png"
DEFAULT_OUTPUT_DIR = "out"
DEFAULT_STYLE = "dreamy collage, cinematic, soft glow"
