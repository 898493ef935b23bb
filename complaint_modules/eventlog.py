"""Append-only text and JSON event logs with size-based rotation."""
import json
import os
from datetime import datetime, timezone

from complaint_modules import config


def utc_now() -> datetime:
    """Return an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_iso(dt: datetime) -> str:
    """RFC3339 UTC timestamp with fixed microsecond width and trailing Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec='microseconds').replace('+00:00', 'Z')


def utc_now_iso() -> str:
    return utc_iso(utc_now())


def _rotate_if_needed(path: str):
    max_bytes = config.env_int('LOG_MAX_BYTES', 1048576)  # 1 MB default
    if not os.path.exists(path):
        return
    try:
        if os.path.getsize(path) < max_bytes:
            return
        ts = utc_now().strftime('%Y%m%d%H%M%S')
        os.rename(path, f"{path}.{ts}")
    except OSError:
        # rotation is best-effort; keep appending to the current file
        pass


def append_log(line: str):
    log_dir = config.log_dir()
    os.makedirs(log_dir, exist_ok=True)
    path = os.path.join(log_dir, 'init.log')
    _rotate_if_needed(path)
    stamp = utc_now().strftime("%Y-%m-%d %H:%M:%S")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"[{stamp}] {line}\n")


def event_log(event: str, **fields):
    """Structured JSON event log (one object per line)."""
    log_dir = config.log_dir()
    path = os.path.join(log_dir, 'events.log')
    payload = {
        'ts': utc_now_iso(),
        'event': event,
        **fields
    }
    try:
        os.makedirs(log_dir, exist_ok=True)
        _rotate_if_needed(path)
        with open(path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")
    except OSError as e:
        append_log(f"event_log_error {e}")
