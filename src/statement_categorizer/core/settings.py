import os

from dotenv import find_dotenv, load_dotenv

from statement_categorizer.logger import get_logger

logger = get_logger(__name__)


CONFIG_FILENAME = "config.yaml"

_CONFIG_FILE_PATH: str | None = None

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "DATA_DIR",
    "DATABASE_URL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "LLM_TEMPERATURE",
    "LEARNED_PATTERN_THRESHOLD",
    "AI_PATTERN_THRESHOLD",
    "RECATEGORIZE_THRESHOLD",
    "RECATEGORIZE_DELAY_SECONDS",
    "BATCH_SIZE",
    "PATTERN_RETENTION_DAYS",
    "MAX_UPLOAD_BYTES",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    resolved = find_dotenv(usecwd=True)
    return resolved or None


def _resolve_config_path() -> str:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        return os.path.join(config_dir, CONFIG_FILENAME)
    cwd = os.getcwd()
    candidate = os.path.join(cwd, "config", CONFIG_FILENAME)
    if os.path.exists(candidate):
        return candidate
    return os.path.join(cwd, CONFIG_FILENAME)


def _strip_inline_comment(raw_value: str) -> str:
    in_single = False
    in_double = False
    for index, char in enumerate(raw_value):
        if char == '"' and not in_single:
            in_double = not in_double
            continue
        if char == "'" and not in_double:
            in_single = not in_single
            continue
        if char == "#" and not in_single and not in_double:
            return raw_value[:index].rstrip()
    return raw_value


def _unquote_value(raw_value: str) -> str:
    if len(raw_value) >= 2 and raw_value[0] == raw_value[-1] and raw_value[0] in {'"', "'"}:
        return raw_value[1:-1]
    return raw_value


def read_config_file(path: str | None) -> dict[str, str]:
    """Read a flat ``KEY: value`` file. Nested YAML is not supported."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            key = key.strip()
            if not key:
                continue
            cleaned = _strip_inline_comment(raw_value).strip()
            if not cleaned:
                continue
            value = _unquote_value(cleaned)
            if value:
                values[key] = value
    return values


def load_environment() -> dict[str, str]:
    """
    Load ``.env`` then the config file into ``os.environ``.

    Values already present in the environment win. Returns the keys taken
    from the config file.
    """
    global _CONFIG_FILE_PATH

    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    _CONFIG_FILE_PATH = _resolve_config_path()
    file_values = read_config_file(_CONFIG_FILE_PATH)

    applied: dict[str, str] = {}
    for key in _CONFIG_KEYS:
        if key not in os.environ and key in file_values:
            os.environ[key] = file_values[key]
            applied[key] = file_values[key]
    return applied


def ensure_dirs(*paths: str | None) -> None:
    for path in paths:
        if path and path not in {".", "./"}:
            os.makedirs(path, exist_ok=True)


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning(
            "[ENV] %s='%s' below minimum %s, using default %s.",
            name,
            raw,
            min_value,
            default,
        )
        return default
    return value


def get_env_float(
    name: str,
    default: float = 0.0,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if (min_value is not None and value < min_value) or (max_value is not None and value > max_value):
        logger.warning("[ENV] %s='%s' out of range, using default %s.", name, raw, default)
        return default
    return value


_SENSITIVE_ENV_KEYS = (
    "KEY",
    "TOKEN",
    "SECRET",
    "PASSWORD",
    "PASS",
    "AUTH",
    "BEARER",
    "PRIVATE",
)

_ENV_KEYS_TO_LOG = (
    "LOG_LEVEL",
    "DATA_DIR",
    "DATABASE_URL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "LEARNED_PATTERN_THRESHOLD",
    "RECATEGORIZE_THRESHOLD",
    "BATCH_SIZE",
    "PATTERN_RETENTION_DAYS",
)


def _should_mask_env_value(name: str, value: str) -> bool:
    upper_name = name.upper()
    if any(marker in upper_name for marker in _SENSITIVE_ENV_KEYS):
        return True
    if value.startswith("sk-") or value.startswith("rk-"):
        return True
    if value.startswith("Bearer ") or value.startswith("bearer "):
        return True
    # Connection strings may embed credentials.
    if "://" in value and "@" in value:
        return True
    return False


def _mask_env_value(name: str, value: str) -> str:
    sanitized = value.replace("\r", "\\r").replace("\n", "\\n")
    if not _should_mask_env_value(name, sanitized):
        return sanitized
    if len(sanitized) <= 4:
        return "****"
    return f"{sanitized[:2]}...{sanitized[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Config file: %s", _CONFIG_FILE_PATH or "<none>")
    for key in _ENV_KEYS_TO_LOG:
        raw_value = os.getenv(key)
        value = "<unset>" if raw_value is None else _mask_env_value(key, raw_value)
        logger.info("[ENV] %s=%s", key, value)


DEFAULT_OPENAI_MODEL = "llama3.2:3b"
DEFAULT_LLM_TEMPERATURE = 0.3
DEFAULT_LEARNED_PATTERN_THRESHOLD = 0.8
DEFAULT_AI_PATTERN_THRESHOLD = 0.9
DEFAULT_RECATEGORIZE_THRESHOLD = 0.7
DEFAULT_RECATEGORIZE_DELAY_SECONDS = 0.1
DEFAULT_BATCH_SIZE = 10
DEFAULT_PATTERN_RETENTION_DAYS = 90
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
LOG_DIR = os.getenv("LOG_DIR")
CONFIG_DIR = os.getenv("CONFIG_DIR")

ensure_dirs(DATA_DIR, LOG_DIR, CONFIG_DIR)


def database_url() -> str:
    return os.getenv("DATABASE_URL") or f"sqlite:///{os.path.join(DATA_DIR, 'categorizer.db')}"


def learned_pattern_threshold() -> float:
    return get_env_float(
        "LEARNED_PATTERN_THRESHOLD", DEFAULT_LEARNED_PATTERN_THRESHOLD, min_value=0.0, max_value=1.0
    )


def ai_pattern_threshold() -> float:
    return get_env_float("AI_PATTERN_THRESHOLD", DEFAULT_AI_PATTERN_THRESHOLD, min_value=0.0, max_value=1.0)


def recategorize_threshold() -> float:
    return get_env_float(
        "RECATEGORIZE_THRESHOLD", DEFAULT_RECATEGORIZE_THRESHOLD, min_value=0.0, max_value=1.0
    )


def recategorize_delay() -> float:
    return get_env_float("RECATEGORIZE_DELAY_SECONDS", DEFAULT_RECATEGORIZE_DELAY_SECONDS, min_value=0.0)


def batch_size() -> int:
    return get_env_int("BATCH_SIZE", DEFAULT_BATCH_SIZE, min_value=1)


def pattern_retention_days() -> int:
    return get_env_int("PATTERN_RETENTION_DAYS", DEFAULT_PATTERN_RETENTION_DAYS, min_value=1)


def max_upload_bytes() -> int:
    return get_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES, min_value=1)
