import os
import sys
import logging
import tempfile
from logging.handlers import RotatingFileHandler


# Basic logging configuration with file output
log_file_path = os.environ.get(
    "LOG_FILE",
    os.path.join(tempfile.gettempdir(), "eqao_backend", "eqao_api.log"),
)
log_dir = os.path.dirname(log_file_path)
os.makedirs(log_dir, exist_ok=True)

# Configure logging with both file and console handlers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        # File handler with rotation
        RotatingFileHandler(
            log_file_path, maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
        ),
        # Console handler for development
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


def _env_bool(key: str, default: bool) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes")


# OpenAI models
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")
OPENAI_VISION_MODEL = os.environ.get("OPENAI_VISION_MODEL", "gpt-4o")
OPENAI_IMAGE_MODEL = os.environ.get("OPENAI_IMAGE_MODEL", "dall-e-3")
GENERATION_TEMPERATURE = float(os.environ.get("GENERATION_TEMPERATURE", "0.8"))

# Model call retries (exponential backoff)
MODEL_MAX_ATTEMPTS = int(os.environ.get("MODEL_MAX_ATTEMPTS", "3"))
MODEL_RETRY_BASE_DELAY = float(os.environ.get("MODEL_RETRY_BASE_DELAY", "1.0"))

# Diagram synthesis. Image generation takes 15-20s on DALL-E 3, the download is quick.
ENABLE_DIAGRAMS = _env_bool("ENABLE_DIAGRAMS", True)
DIAGRAM_GENERATION_TIMEOUT = float(os.environ.get("DIAGRAM_GENERATION_TIMEOUT", "25"))
DIAGRAM_DOWNLOAD_TIMEOUT = float(os.environ.get("DIAGRAM_DOWNLOAD_TIMEOUT", "15"))
DIAGRAM_MAX_SIZE = int(os.environ.get("DIAGRAM_MAX_SIZE", "512"))

# Source material limits
SOURCE_QUESTION_MIN_LENGTH = 10
SOURCE_QUESTION_MAX_LENGTH = 10000
SOURCE_ANSWER_MAX_LENGTH = 500

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]
