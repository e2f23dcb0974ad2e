"""
Project-wide constants for the datalens parsing engine
"""  # noqa: D200, D212, D415

# ==============================================================================
# Ingestion Limits
# ==============================================================================

_KB = 1024
_MB = 1024 * _KB

MAX_FILE_SIZE = 10 * _MB  # Inbound text cap, enforced at the ingestion boundary
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")

# ==============================================================================
# Normalization Limits
# ==============================================================================

MAX_ROWS = 1000  # Rows kept per ParseResult; extra rows are dropped silently

# ==============================================================================
# Repair Service Configuration
# ==============================================================================

DEFAULT_MODEL = "gemini-2.0-flash"
REPAIR_TIMEOUT = 30.0  # seconds

# Deterministic generation favors literal correction over rewriting
REPAIR_TEMPERATURE = 0.1
REPAIR_TOP_K = 1
REPAIR_TOP_P = 0.8
REPAIR_MAX_OUTPUT_TOKENS = 8192

SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

# ==============================================================================
# Credential Pre-check
# ==============================================================================

API_KEY_PREFIX = "AIza"
MIN_API_KEY_LENGTH = 21  # Keys must be strictly longer than 20 characters
