# --- File selection ---

MAX_FILE_SIZE = 1024 * 1024  # bytes; a file of exactly this size is still eligible
BINARY_CHECK_BYTES = 8192  # prefix scanned for NUL bytes

DEFAULT_IGNORE_PATHS = (
    ".git",
    ".gitignore",
    ".vscode",
    ".idea",
    ".vscode-test",
    "target",
    "dist",
    ".gradle",
    "dep",
    "node_modules",
    "package-lock.json",
    "Cargo.lock",
)


# --- Chunking ---

CHUNK_SIZE = 2000  # characters per chunk


# --- Scoring ---

SCORE_MIN = 0.0
SCORE_MAX = 100.0
RAW_SAMPLE_CHARS = 200  # chars of an unparseable response kept for diagnostics

DEFAULT_TOP_N = 10
DEFAULT_CONCURRENCY = 4
DEFAULT_TOP_K = 3
TRIAGE_ROUNDS = 3  # filename passes while every score is zero


# --- Scoring service ---

DEFAULT_PROVIDER = "ollama"
DEFAULT_MODEL = "dolphin-mistral:latest"
OLLAMA_BASE_URL = "http://localhost:11434"

REQUEST_TIMEOUT = 60.0  # seconds, per call
MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 0.5
RETRY_MAX_WAIT = 8.0
SCORING_TEMPERATURE = 0.0
SCORING_MAX_TOKENS = 256

RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})
