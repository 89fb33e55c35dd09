from __future__ import annotations

"""Bit-level probes over ciphertext (Hamming distance, Shannon entropy).

Single-sample measurements: one avalanche pair and one histogram per
algorithm. Good enough to separate a stream cipher from ECB mode, not a
substitute for a statistical test battery.
"""

import numpy as np


def _as_array(data: bytes | bytearray | memoryview) -> np.ndarray:
    return np.frombuffer(bytes(data), dtype=np.uint8)


def hamming_distance(a: bytes, b: bytes) -> int:
    """Number of differing bits over the common prefix of `a` and `b`.

    Ciphertexts of different lengths (padding, prepended nonces) are
    truncated to the shorter one, which biases the count downwards.
    """
    n = min(len(a), len(b))
    if n == 0:
        return 0
    xa = _as_array(a[:n])
    xb = _as_array(b[:n])
    return int(np.unpackbits(np.bitwise_xor(xa, xb)).sum())


def flip_first_bit(data: bytes) -> bytes:
    """Copy of `data` with the least-significant bit of byte 0 flipped."""
    if not data:
        raise ValueError("cannot flip a bit of an empty buffer")
    buf = bytearray(data)
    buf[0] ^= 0x01
    return bytes(buf)


def byte_histogram(data: bytes) -> np.ndarray:
    return np.bincount(_as_array(data), minlength=256).astype(np.float64)


def _entropy_from_counts(counts: np.ndarray) -> float:
    total = float(counts.sum())
    if total <= 0.0:
        return 0.0
    nz = counts[counts > 0] / total
    entropy = float(-(nz * np.log2(nz)).sum())
    # -0.0 for a point mass
    return abs(entropy)


def shannon_entropy(data: bytes) -> float:
    """Shannon entropy of the byte-value distribution, in bits per byte (0-8)."""
    if not data:
        raise ValueError("entropy of an empty buffer is undefined")
    return _entropy_from_counts(byte_histogram(data))
