import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env once, globally
load_dotenv()

logger = logging.getLogger(__name__)

# Project root (independent of current working directory).
PROJECT_ROOT = Path(__file__).resolve().parents[3]

def resolve_dir(env_key: str, default: str) -> Path:
    """
    Resolve a directory path from ENV.
    Relative paths are resolved against PROJECT_ROOT.
    """
    value = os.getenv(env_key, default)
    path = Path(value)

    if not path.is_absolute():
        path = PROJECT_ROOT / path

    path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_int(env_key: str, default: int) -> int:
    """Read a positive integer setting from ENV, falling back to default."""
    value = os.getenv(env_key)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", env_key, value, default)
        return default
    if parsed <= 0:
        logger.warning("%s=%r must be positive, using %d", env_key, value, default)
        return default
    return parsed


OUTPUT_DIR = resolve_dir("GATEWAY_INSPECTOR_OUTPUT_DIR", "out")
LOGS_DIR   = resolve_dir("GATEWAY_INSPECTOR_LOGS_DIR", "logs")


def default_output_path(fmt: str) -> Path:
    return OUTPUT_DIR / f"backup_info.{fmt}"


# Conditional actions nest a few levels deep in practice.
MAX_CONDITIONAL_DEPTH = resolve_int("GATEWAY_INSPECTOR_MAX_CONDITIONAL_DEPTH", 16)
WORKERS = resolve_int("GATEWAY_INSPECTOR_WORKERS", 1)
