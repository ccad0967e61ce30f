"""
CEN derivation - rolling key + time window -> Contact Event Number

A CEN is the AES-128 encryption of the window index (16-byte big-endian
block) under the rolling key. One key yields one CEN per rotation window, and
a CEN cannot be mapped back to its key without trying the key itself.

Usage:
    key = generate_rolling_key(coepi_timestamp())
    cen = derive(key, window_index(now))
    week = derive_all(key, window_count=672)
"""
import secrets
from typing import List, Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from coepi_sync.models.domain.cen import RollingKey

# Seconds a single CEN is broadcast before rotating to the next window
CEN_ROTATION_INTERVAL = 900

KEY_LENGTH_BYTES = 16
CEN_LENGTH_BYTES = 16


def window_index(timestamp: int, interval_seconds: int = CEN_ROTATION_INTERVAL) -> int:
    """Rotation window containing timestamp"""
    return timestamp // interval_seconds


def _key_bytes(key: RollingKey) -> bytes:
    try:
        raw = bytes.fromhex(key.key)
    except ValueError as e:
        raise ValueError(f"Rolling key is not valid hex: {key.key!r}") from e
    if len(raw) != KEY_LENGTH_BYTES:
        raise ValueError(
            f"Rolling key must be {KEY_LENGTH_BYTES} bytes, got {len(raw)}"
        )
    return raw


def is_valid_key(key: str) -> bool:
    """True if key is a 16-byte secret written as hex"""
    try:
        return len(bytes.fromhex(key)) == KEY_LENGTH_BYTES
    except (TypeError, ValueError):
        return False


def _window_block(window: int) -> bytes:
    if window < 0:
        raise ValueError(f"Window index must be non-negative, got {window}")
    return window.to_bytes(CEN_LENGTH_BYTES, 'big')


def _encrypt_blocks(key: RollingKey, plaintext: bytes) -> bytes:
    # ECB: each 16-byte block is one window index
    encryptor = Cipher(algorithms.AES(_key_bytes(key)), modes.ECB()).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()


def derive(key: RollingKey, window: int) -> bytes:
    """CEN broadcast under key during window"""
    return _encrypt_blocks(key, _window_block(window))


def derive_all(
    key: RollingKey,
    window_count: int,
    first_window: Optional[int] = None,
    interval_seconds: int = CEN_ROTATION_INTERVAL
) -> List[bytes]:
    """
    Derive consecutive CENs for a key

    Args:
        key: Rolling key
        window_count: Number of windows to cover (<= 0 yields nothing)
        first_window: First window index, defaults to the key's issuance window
        interval_seconds: Rotation interval used to locate the issuance window

    Returns:
        One CEN per window, in window order
    """
    if window_count <= 0:
        return []
    if first_window is None:
        first_window = window_index(key.timestamp, interval_seconds)

    plaintext = b''.join(
        _window_block(first_window + offset) for offset in range(window_count)
    )
    ciphertext = _encrypt_blocks(key, plaintext)
    return [
        ciphertext[i:i + CEN_LENGTH_BYTES]
        for i in range(0, len(ciphertext), CEN_LENGTH_BYTES)
    ]


def current_cen(key: RollingKey, timestamp: int, interval_seconds: int = CEN_ROTATION_INTERVAL) -> bytes:
    """CEN this device broadcasts at timestamp"""
    return derive(key, window_index(timestamp, interval_seconds))


def generate_rolling_key(timestamp: int) -> RollingKey:
    """Fresh random rolling key issued at timestamp"""
    return RollingKey(key=secrets.token_hex(KEY_LENGTH_BYTES), timestamp=timestamp)
