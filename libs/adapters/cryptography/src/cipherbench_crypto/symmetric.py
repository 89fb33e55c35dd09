from __future__ import annotations

"""Block and stream cipher adapters backed by `cryptography`.

Block ciphers run in ECB mode with PKCS#7 padding so identical plaintext
blocks encrypt identically; the avalanche probe is meant to expose that.
"""

import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.decrepit.ciphers.algorithms import Blowfish, TripleDES

from cipherbench import registry
from ._util import env_int

_CHACHA_NONCE_LEN = 12
_CHACHA_INITIAL_COUNTER = 1


def _ecb_encrypt(algorithm, plaintext: bytes) -> bytes:
    padder = padding.PKCS7(algorithm.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    enc = Cipher(algorithm, modes.ECB()).encryptor()
    return enc.update(padded) + enc.finalize()


def _ecb_decrypt(algorithm, ciphertext: bytes) -> bytes:
    dec = Cipher(algorithm, modes.ECB()).decryptor()
    padded = dec.update(ciphertext) + dec.finalize()
    unpadder = padding.PKCS7(algorithm.block_size).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


@registry.register("aes")
class AES:
    """AES/ECB/PKCS7; key size from CIPHERBENCH_AES_BITS (default 128)."""
    name = "AES"

    def __init__(self) -> None:
        self._bits = env_int("CIPHERBENCH_AES_BITS", 128, allowed=(128, 192, 256))
        self._key = os.urandom(self._bits // 8)
        self.mech = f"AES-{self._bits}-ECB"

    def encrypt(self, plaintext: bytes) -> bytes:
        return _ecb_encrypt(algorithms.AES(self._key), plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return _ecb_decrypt(algorithms.AES(self._key), ciphertext)

    def key_length_bits(self) -> int:
        return len(self._key) * 8


@registry.register("des")
class DES:
    """Single DES/ECB/PKCS7 via TripleDES with one 8-byte key.

    Reports 64 bits: the encoded key including its parity bits, not the
    effective 56-bit strength.
    """
    name = "DES"
    mech = "DES-ECB"

    def __init__(self) -> None:
        self._key = os.urandom(8)

    def encrypt(self, plaintext: bytes) -> bytes:
        return _ecb_encrypt(TripleDES(self._key), plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return _ecb_decrypt(TripleDES(self._key), ciphertext)

    def key_length_bits(self) -> int:
        return len(self._key) * 8


@registry.register("3des")
class TDES:
    name = "TDES"
    mech = "DESede-ECB"

    def __init__(self) -> None:
        self._key = os.urandom(24)

    def encrypt(self, plaintext: bytes) -> bytes:
        return _ecb_encrypt(TripleDES(self._key), plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return _ecb_decrypt(TripleDES(self._key), ciphertext)

    def key_length_bits(self) -> int:
        return len(self._key) * 8


@registry.register("blowfish")
class BlowfishCipher:
    name = "Blowfish"
    mech = "Blowfish-128-ECB"

    def __init__(self) -> None:
        self._key = os.urandom(16)

    def encrypt(self, plaintext: bytes) -> bytes:
        return _ecb_encrypt(Blowfish(self._key), plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return _ecb_decrypt(Blowfish(self._key), ciphertext)

    def key_length_bits(self) -> int:
        return len(self._key) * 8


@registry.register("chacha20")
class ChaCha20:
    """ChaCha20 with a fresh 12-byte nonce per call, prepended to the output.

    Two encryptions of the same plaintext never share a keystream, so the
    avalanche distance reflects the nonce as much as the one flipped bit.
    """
    name = "ChaCha20"
    mech = "ChaCha20-256"

    def __init__(self) -> None:
        self._key = os.urandom(32)

    def _cipher(self, nonce: bytes) -> Cipher:
        # cryptography takes a 16-byte nonce: 4-byte LE block counter + 12-byte nonce
        full_nonce = _CHACHA_INITIAL_COUNTER.to_bytes(4, "little") + nonce
        return Cipher(algorithms.ChaCha20(self._key, full_nonce), mode=None)

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(_CHACHA_NONCE_LEN)
        enc = self._cipher(nonce).encryptor()
        return nonce + enc.update(plaintext) + enc.finalize()

    def decrypt(self, ciphertext: bytes) -> bytes:
        if len(ciphertext) < _CHACHA_NONCE_LEN:
            raise ValueError("ciphertext too short")
        nonce, body = ciphertext[:_CHACHA_NONCE_LEN], ciphertext[_CHACHA_NONCE_LEN:]
        dec = self._cipher(nonce).decryptor()
        return dec.update(body) + dec.finalize()

    def key_length_bits(self) -> int:
        return len(self._key) * 8
