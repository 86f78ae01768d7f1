"""
Application default settings and constants
"""
from pathlib import Path
import sys

# =============================================================================
# Application Information
# =============================================================================
APP_NAME = "Slice & Slide"
APP_VERSION = "1.0.0"

# =============================================================================
# Block Detection Settings (empirical, tunable)
# =============================================================================
PROCESSING_SCALE = 0.5            # Detection runs on a downscaled copy
INK_THRESHOLD = 230               # Mean RGB brightness below this is "ink"
MIN_KERNEL_HALF_WIDTH = 2         # Smallest dilation half-width (px)
KERNEL_GRANULARITY_FACTOR = 1.5   # Dilation half-width = granularity × this
NOISE_MAX_SIZE_PX = 5             # Components this small (downscaled) are noise
TEXT_MAX_HEIGHT_PX = 150          # Blocks lower than this are text
TEXT_MIN_ASPECT_RATIO = 2.5       # Wide blocks ...
WIDE_TEXT_MAX_HEIGHT_PX = 300     # ... lower than this are text too

DEFAULT_GRANULARITY = 5
MIN_GRANULARITY = 1
MAX_GRANULARITY = 20

# =============================================================================
# OCR Settings
# =============================================================================
OCR_LANGUAGES = "eng+jpn"         # English + Japanese
OCR_CONFIDENCE_THRESHOLD = 0      # Tesseract word confidence cut-off (0-100)
DEFAULT_LINE_HEIGHT_PX = 16       # Page median when no line was recognized
BOLD_HEIGHT_RATIO = 1.2           # Block median / page median above this = bold
FONT_SIZE_RATIO = 0.75            # px -> pt

# =============================================================================
# Text Color Settings
# =============================================================================
COLOR_QUANTIZATION_STEP = 10      # Channels rounded to nearest multiple
COLOR_MIN_DISTANCE = 60           # RGB distance separating text from background
COLOR_ALPHA_CUTOFF = 50           # Pixels with lower alpha are ignored

# =============================================================================
# Editing Settings
# =============================================================================
HISTORY_LIMIT = 20                       # Undo snapshots kept
GRANULARITY_DEBOUNCE_SECONDS = 0.5       # Quiet period before re-detection

# =============================================================================
# Rendering / Export Settings
# =============================================================================
PDF_RENDER_DPI = 144              # 2x the PDF's 72 pt/in
SLIDE_WIDTH_INCHES = 10
DEFAULT_FONT_FAMILY = "Yu Gothic"
DEFAULT_EXPORT_FONT_PT = 12
EXPORT_FONT_HEIGHT_RATIO = 0.85   # Line height -> font size

# =============================================================================
# Default Tool Paths
# =============================================================================
if sys.platform == 'win32':
    DEFAULT_TESSERACT_PATHS = [
        Path(r"C:\Program Files\Tesseract-OCR\tesseract.exe"),
        Path(r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe"),
    ]
    DEFAULT_POPPLER_PATHS = [
        Path(r"C:\Program Files\poppler\Library\bin"),
        Path(r"C:\Program Files\poppler\bin"),
        Path(r"C:\poppler\Library\bin"),
        Path(r"C:\poppler\bin"),
    ]
else:
    # macOS/Linux: assume they exist in system paths
    DEFAULT_TESSERACT_PATHS = []
    DEFAULT_POPPLER_PATHS = []

# =============================================================================
# Settings File
# =============================================================================
SETTINGS_FILENAME = "settings.json"
APP_DATA_DIRNAME = "SliceAndSlide"
