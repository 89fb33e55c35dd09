
from __future__ import annotations
from typing import Protocol, runtime_checkable

"""Cipher capability contract used by adapters.

Adapters implement this Protocol and register themselves into the global
registry. The runner and the evaluator only see this interface, never the
library behind a concrete cipher.
"""

@runtime_checkable
class CipherCapability(Protocol):
    """Symmetric, stream, public-key or password-based cipher contract."""
    name: str
    def encrypt(self, plaintext: bytes) -> bytes: ...
    def decrypt(self, ciphertext: bytes) -> bytes: ...
    def key_length_bits(self) -> int: ...
