"""Common domain types."""
import itertools
import os
import re
import threading
import time
from datetime import datetime, timezone

# 4-byte seconds | 5-byte per-process random | 3-byte counter, hex encoded.
# Fixed width lowercase hex, so string order is creation order.
ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

_process_unique = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_lock = threading.Lock()


def generate_id() -> str:
    """Generate a new creation-ordered 24-char hex id."""
    with _lock:
        count = next(_counter) % 0x1000000
        seconds = int(time.time())
    raw = seconds.to_bytes(4, "big") + _process_unique + count.to_bytes(3, "big")
    return raw.hex()


def is_valid_id(value: object) -> bool:
    """True when value is a well-formed id string."""
    return isinstance(value, str) and bool(ID_PATTERN.match(value))


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (stored columns are naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
