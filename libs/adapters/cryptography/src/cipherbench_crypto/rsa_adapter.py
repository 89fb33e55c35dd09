from __future__ import annotations
from cipherbench import registry

from cryptography.hazmat.primitives.asymmetric import rsa, padding
from cryptography.hazmat.primitives import serialization

from ._util import env_int

_PKCS1_V15_OVERHEAD = 11


def _rsa_bits() -> int:
    return env_int("CIPHERBENCH_RSA_BITS", 2048)


@registry.register("rsa")
class RSA:
    """RSA with PKCS#1 v1.5 padding, applied block by block to bulk data.

    Each block carries at most k-11 plaintext bytes and expands to k bytes,
    so ciphertext is noticeably larger than the corpus.

    `key_length_bits` reports the DER-encoded public key size, not the
    modulus size. That inflates RSA against the symmetric ciphers; it is
    kept so rankings stay comparable with earlier result files.
    """
    name = "RSA"

    def __init__(self) -> None:
        self._bits = _rsa_bits()
        self._sk = rsa.generate_private_key(public_exponent=65537, key_size=self._bits)
        self._pk = self._sk.public_key()
        self.mech = f"RSA-{self._bits}-PKCS1v15"
        self._k = (self._bits + 7) // 8

    @property
    def modulus_bits(self) -> int:
        return self._pk.key_size

    def encrypt(self, plaintext: bytes) -> bytes:
        step = self._k - _PKCS1_V15_OVERHEAD
        out = bytearray()
        for i in range(0, len(plaintext), step):
            out += self._pk.encrypt(plaintext[i:i + step], padding.PKCS1v15())
        return bytes(out)

    def decrypt(self, ciphertext: bytes) -> bytes:
        if len(ciphertext) % self._k:
            raise ValueError(f"ciphertext length {len(ciphertext)} is not a multiple of {self._k}")
        out = bytearray()
        for i in range(0, len(ciphertext), self._k):
            out += self._sk.decrypt(ciphertext[i:i + self._k], padding.PKCS1v15())
        return bytes(out)

    def key_length_bits(self) -> int:
        encoded = self._pk.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return len(encoded) * 8
