import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger
from .paths import default_db_path, expand_abs

log = get_logger("config")

BACKEND_GEMINI = "gemini"
BACKEND_OPENAI = "openai"
BACKEND_SIMULATED = "simulated"
BACKENDS = (BACKEND_GEMINI, BACKEND_OPENAI, BACKEND_SIMULATED)

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_VISION_TIMEOUT = 60


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    repository-level config files like `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate environment."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(env: Dict[str, str], *keys: str) -> Optional[str]:
    """Process environment wins over .env; first non-empty key wins."""
    for key in keys:
        v = os.environ.get(key)
        if v and v.strip():
            return v.strip()
    for key in keys:
        v = env.get(key)
        if v:
            return v
    return None


@dataclass(frozen=True)
class AppConfig:
    backend: str
    gemini_api_key: Optional[str]
    gemini_model: str
    openai_api_key: Optional[str]
    openai_model: str
    openai_base_url: Optional[str]
    db_path: str
    vision_timeout: int

    @property
    def vision_api_key(self) -> Optional[str]:
        if self.backend == BACKEND_OPENAI:
            return self.openai_api_key
        return self.gemini_api_key


def load_config(dotenv_dir: Optional[str] = None) -> AppConfig:
    """Assemble AppConfig from environment and the nearest .env file."""
    start = dotenv_dir or os.getcwd()
    env = _read_dotenv(start)

    backend = (_lookup(env, "PARTSBOX_BACKEND") or BACKEND_GEMINI).lower()
    if backend not in BACKENDS:
        log.warning("Unknown PARTSBOX_BACKEND=%r; defaulting to '%s'", backend, BACKEND_GEMINI)
        backend = BACKEND_GEMINI

    timeout_raw = _lookup(env, "VISION_TIMEOUT")
    try:
        timeout = int(timeout_raw) if timeout_raw else DEFAULT_VISION_TIMEOUT
    except ValueError:
        log.warning("VISION_TIMEOUT=%r is not an integer; using %ss", timeout_raw, DEFAULT_VISION_TIMEOUT)
        timeout = DEFAULT_VISION_TIMEOUT

    db_raw = _lookup(env, "PARTSBOX_DB")
    db_path = expand_abs(db_raw) if db_raw else default_db_path(start)

    config = AppConfig(
        backend=backend,
        gemini_api_key=_lookup(env, "GEMINI_API_KEY", "API_KEY"),
        gemini_model=_lookup(env, "GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        openai_api_key=_lookup(env, "OPENAI_API_KEY", "openai_api_key"),
        openai_model=_lookup(env, "OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        openai_base_url=_lookup(env, "OPENAI_BASE_URL"),
        db_path=db_path,
        vision_timeout=max(1, timeout),
    )
    log.debug("Config loaded: backend=%s db=%s", config.backend, config.db_path)
    return config
