from __future__ import annotations

import hashlib
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for rel in ("libs/core/src", "libs/adapters/cryptography/src", "apps/cli/src"):
    candidate = str(ROOT / rel)
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from cipherbench import registry  # noqa: E402
from cipherbench_cli.runners import common as runners_common  # noqa: E402


class XorCipher:
    """Single-byte XOR: invertible, one flipped plaintext bit flips one ciphertext bit."""

    def __init__(self, name: str = "xor", key: int = 0x5A, key_bits: int = 8) -> None:
        self.name = name
        self._key = key
        self._key_bits = key_bits

    def encrypt(self, plaintext: bytes) -> bytes:
        return bytes(b ^ self._key for b in plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return self.encrypt(ciphertext)

    def key_length_bits(self) -> int:
        return self._key_bits


class DigestStreamCipher:
    """Keystream derived from a hash of the whole plaintext, so any change diffuses everywhere."""

    def __init__(self, name: str = "digest", key_bits: int = 256) -> None:
        self.name = name
        self._key_bits = key_bits

    def encrypt(self, plaintext: bytes) -> bytes:
        seed = hashlib.sha256(plaintext).digest()
        stream = bytearray()
        counter = 0
        while len(stream) < len(plaintext):
            stream += hashlib.sha256(seed + counter.to_bytes(8, "big")).digest()
            counter += 1
        return bytes(p ^ s for p, s in zip(plaintext, stream))

    def decrypt(self, ciphertext: bytes) -> bytes:
        raise NotImplementedError("one-way test cipher")

    def key_length_bits(self) -> int:
        return self._key_bits


class FailingCipher:
    def __init__(self, name: str = "broken") -> None:
        self.name = name

    def encrypt(self, plaintext: bytes) -> bytes:
        raise RuntimeError("provider error: unsupported parameters")

    def decrypt(self, ciphertext: bytes) -> bytes:
        raise RuntimeError("provider error: unsupported parameters")

    def key_length_bits(self) -> int:
        return 128


@pytest.fixture
def corpus() -> bytes:
    return bytes(range(256)) * 16


@pytest.fixture
def dummy_registry():
    original_items = dict(registry._items)  # type: ignore[attr-defined]
    registry._items.clear()  # type: ignore[attr-defined]
    registry._items.update(  # type: ignore[attr-defined]
        {
            "dummy-xor": lambda: XorCipher("dummy-xor"),
            "dummy-digest": lambda: DigestStreamCipher("dummy-digest"),
        }
    )
    runners_common.reset_adapter_cache()
    try:
        yield
    finally:
        registry._items.clear()  # type: ignore[attr-defined]
        registry._items.update(original_items)  # type: ignore[attr-defined]
        runners_common.reset_adapter_cache()
