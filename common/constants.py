"""Project-wide constants (default storage layout, expiry and retry policy)."""

DEFAULT_BASE_DIR: str = "./data/upload/files"

TEMP_DIR_NAME: str = "temp-uploads"
OUTPUT_DIR_NAME: str = "file-uploads"
DEAD_LETTER_DIR_NAME: str = "dead-letter"
CLAIMS_DIR_NAME: str = "claims"

DEAD_LETTER_EXPIRE_HOURS: int = 12

CLEANUP_MAX_ATTEMPTS: int = 2
CLEANUP_RETRY_DELAY_MS: int = 100

# Upper bound on exclusive-create attempts when picking a revision suffix
MAX_REVISION_ATTEMPTS: int = 1000

COMPRESSION_NONE: str = "none"
COMPRESSION_DEFLATE: str = "deflate"
KNOWN_COMPRESSIONS = (COMPRESSION_NONE, COMPRESSION_DEFLATE)

COMPLETION_MODE_COUNT: str = "count"
COMPLETION_MODE_INDEX_SET: str = "index_set"
COMPLETION_MODES = (COMPLETION_MODE_COUNT, COMPLETION_MODE_INDEX_SET)

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
