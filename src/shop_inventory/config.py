import os
from typing import Dict, Optional, Tuple

from .logging import get_logger
from .paths import expand_abs

log = get_logger("config")

DEFAULT_STORAGE_KEY = "products"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8002


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    project-level config files like `.env`.
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
    """Minimal .env reader.

    - Reads key=value pairs, ignores comments (#/;) and blank lines.
    - Trims single/double quotes around the value.
    - Returns mapping; does not mutate environment.
    """
    env: Dict[str, str] = {}
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return env
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw in f:
                line = raw.strip()
                if not line or line.startswith("#") or line.startswith(";"):
                    continue
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip()
                if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                    v = v[1:-1]
                env[k] = v.strip()
        log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    except OSError as e:
        log.warning(f"Failed reading .env: {e}")
    return env


def _lookup(dotenv_dir: str, name: str) -> Optional[str]:
    v = os.environ.get(name)
    if v:
        return v.strip()
    v = _read_dotenv(dotenv_dir).get(name)
    return v.strip() if v else None


def load_db_path(dotenv_dir: str) -> Optional[str]:
    """Return an explicit storage file path (INVENTORY_DB_PATH) if configured."""
    v = _lookup(dotenv_dir, "INVENTORY_DB_PATH")
    if v:
        log.info("Using INVENTORY_DB_PATH override")
        return expand_abs(v)
    return None


def load_storage_key(dotenv_dir: str) -> str:
    return _lookup(dotenv_dir, "INVENTORY_STORAGE_KEY") or DEFAULT_STORAGE_KEY


def load_server(dotenv_dir: str) -> Tuple[str, int]:
    """Return (host, port) for the API server with sensible defaults."""
    host = _lookup(dotenv_dir, "INVENTORY_HOST") or DEFAULT_HOST
    raw_port = _lookup(dotenv_dir, "INVENTORY_PORT")
    port = DEFAULT_PORT
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            log.warning(f"Ignoring invalid INVENTORY_PORT={raw_port!r}; using {DEFAULT_PORT}")
    return host, port
