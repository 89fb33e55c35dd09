from __future__ import annotations

"""Password-based encryption: PBES1 "PBEWithMD5AndDES" (PKCS #5 v1.5).

The derived key is MD5 iterated over password || salt; bytes 0-7 become the
DES key and bytes 8-15 the CBC IV. Kept for comparison with legacy tooling
only.
"""

import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, modes
from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES

from cipherbench import registry
from ._util import env_str

PBE_ITERATIONS = 1000
_SALT_LEN = 8
_DEFAULT_PASSWORD = "secretPassword"


def pbkdf1_md5(password: bytes, salt: bytes, iterations: int) -> bytes:
    if iterations < 1:
        raise ValueError("iterations must be >= 1")
    digest = password + salt
    for _ in range(iterations):
        h = hashes.Hash(hashes.MD5())
        h.update(digest)
        digest = h.finalize()
    return digest


@registry.register("pbe-md5-des")
class PBEWithMD5AndDES:
    """Reports the password length in bits as its key length.

    That is the size of the encoded secret the scheme is keyed with, not a
    measure of its strength.
    """
    name = "PBEWithMD5AndDES"
    mech = "PBES1-MD5-DES-CBC"

    def __init__(self) -> None:
        self._password = env_str("CIPHERBENCH_PBE_PASSWORD", _DEFAULT_PASSWORD).encode("utf-8")
        self._salt = os.urandom(_SALT_LEN)
        dk = pbkdf1_md5(self._password, self._salt, PBE_ITERATIONS)
        self._key, self._iv = dk[:8], dk[8:16]

    def _cipher(self) -> Cipher:
        return Cipher(TripleDES(self._key), modes.CBC(self._iv))

    def encrypt(self, plaintext: bytes) -> bytes:
        padder = padding.PKCS7(64).padder()
        padded = padder.update(plaintext) + padder.finalize()
        enc = self._cipher().encryptor()
        return enc.update(padded) + enc.finalize()

    def decrypt(self, ciphertext: bytes) -> bytes:
        dec = self._cipher().decryptor()
        padded = dec.update(ciphertext) + dec.finalize()
        unpadder = padding.PKCS7(64).unpadder()
        return unpadder.update(padded) + unpadder.finalize()

    def key_length_bits(self) -> int:
        return len(self._password) * 8
