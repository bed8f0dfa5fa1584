"""
Shared utility functions for wallet-create.

Contains hashing and timestamp helpers used across packages.
"""

import hashlib
import time


def sha256_hex(data: str | bytes) -> str:
    """Hex encoded sha256 of `data` (str is hashed as utf-8)."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def sha256_n_times(data: str | bytes, rounds: int) -> str:
    """Apply sha256 `rounds` times (at least once) and return the hex digest."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    digest = hashlib.sha256(data).digest()
    for _ in range(1, rounds):
        digest = hashlib.sha256(digest).digest()
    return digest.hex()


def timestamp_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)
