# core/utils.py
import random
import string
import time
from datetime import datetime, timezone, timedelta


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z, as the frontend expects."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_iso_now() -> str:
    return to_iso(utc_now())


def parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def expires_in(minutes: int) -> datetime:
    return utc_now() + timedelta(minutes=minutes)


def now_ms() -> int:
    return int(time.time() * 1000)


def random_suffix(length: int = 9) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


def make_id(prefix: str) -> str:
    """Timestamp based id with a random suffix; not collision checked."""
    return f"{prefix}_{now_ms()}_{random_suffix()}"
