"""Environment-driven settings for the complaint intake service.

Values are read from ``os.environ`` at call time so tests (and a ``.env``
file loaded at startup) can change them without re-importing modules.
"""
import os
from typing import Optional

PLACEHOLDER_API_KEY = 'your_groq_api_key_here'


def load_dotenv(path: str = '.env') -> None:
    """Load KEY=VALUE lines from ``path`` without overriding explicit env."""
    if not os.path.exists(path):
        return
    with open(path, 'r', encoding='utf-8') as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue
            k, v = line.split('=', 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            os.environ.setdefault(k, v)


def truthy(s: Optional[str]) -> bool:
    return str(s).lower() in ("1", "true", "yes", "on")


def env_str(key: str, default: str = '') -> str:
    return (os.environ.get(key) or default).strip()


def env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def data_dir() -> str:
    return env_str('DATA_DIR', 'data')


def log_dir() -> str:
    return env_str('LOG_DIR', 'logs')


def upload_dir() -> str:
    return env_str('UPLOAD_DIR', 'uploads')


def ai_api_key() -> Optional[str]:
    """Return the configured Groq key, or None when unset or left as the placeholder."""
    key = env_str('GROQ_API_KEY')
    if not key or key == PLACEHOLDER_API_KEY:
        return None
    return key


def store_backend() -> str:
    backend = env_str('COMPLAINT_STORE_BACKEND', 'json').lower()
    if backend not in ('json', 'sqlite'):
        backend = 'json'
    return backend


def store_path(backend: str) -> str:
    explicit = env_str('COMPLAINT_STORE_PATH')
    if explicit:
        return explicit
    filename = 'complaints.db' if backend == 'sqlite' else 'complaints.json'
    return os.path.join(data_dir(), filename)
