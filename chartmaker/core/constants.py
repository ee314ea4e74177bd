"""
Core constants used across the application. Keep these simple and documented.
"""

# Upstream response cache
CACHE_TTL_SECONDS: float = 300.0
CACHE_MAX_ENTRIES: int = 800
CACHE_SWEEP_INTERVAL_SECONDS: float = 60.0

# Batch recommendation: max upstream calls in flight at once
RECOMMEND_CONCURRENCY: int = 8
# Per upstream call; applies to the HTTP client and to each dispatched group
REQUEST_TIMEOUT_SECONDS: float = 15.0

# Bangumi browse paging
DEFAULT_BROWSE_LIMIT: int = 20
MAX_BROWSE_LIMIT: int = 100

# VNDB query paging
VNDB_DEFAULT_RESULTS: int = 20
VNDB_MAX_RESULTS: int = 100

# Subject type used when a recommendation cell has neither tags nor a type
DEFAULT_SUBJECT_TYPE: str = "anime"
# Subject type routed to VNDB instead of Bangumi
VNDB_SUBJECT_TYPE: str = "vn"

MAX_UPLOAD_BYTES: int = 20 << 20

STATE_FILE_NAME: str = "state.json"
COVERS_DIR_NAME: str = "covers"

IMAGE_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"})
