# swapwatch/internal/utils/helpers.py

import os
import time
from typing import Optional

from hexbytes import HexBytes

_TRUE_VALUES = ("true", "yes", "1", "on")


# -------------------------------------------------------------------------
# Timing helpers
# -------------------------------------------------------------------------
def perf_ns() -> int:
    """High-resolution monotonic clock (nanoseconds)."""
    return time.perf_counter_ns()

def ns_to_ms(p0: int, p1: int) -> float:
    return (p1 - p0) / 1_000_000


# -------------------------------------------------------------------------
# Environment helpers
# -------------------------------------------------------------------------
def get_env_int(*names, default: int = 0):
    for n in names:
        v = os.getenv(n)
        if v is not None:
            return int(v)
    return int(default)

def get_env_float(*names, default: float = 0.0):
    for n in names:
        v = os.getenv(n)
        if v is not None:
            return float(v)
    return float(default)

def get_env_str(*names, default: str = ""):
    for n in names:
        v = os.getenv(n)
        if v is not None:
            return v
    return default

def get_env_bool(*names, default: bool = False):
    for n in names:
        v = os.getenv(n)
        if v is not None:
            return v.strip().lower() in _TRUE_VALUES
    return bool(default)


# -------------------------------------------------------------------------
# Display helpers
# -------------------------------------------------------------------------
def to_hex(value: Optional[bytes]) -> Optional[str]:
    """0x-prefixed hex for bytes/HexBytes, passthrough for str and None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return HexBytes(value).to_0x_hex()

def short_hash(value, keep: int = 10) -> str:
    h = to_hex(value) or ""
    if len(h) <= keep + 4:
        return h
    return f"{h[:keep]}…{h[-4:]}"
