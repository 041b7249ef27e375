# Vault - Envelope Codec
#
# Magic number + per-envelope salt -> key (PBKDF2-SHA256, 10k iterations)
# Field encryption (AES-256-CBC, PKCS7)
# Envelope: "<salt hex>:<base64(iv || ciphertext)>"

import base64
import binascii
import os
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .. import config

# Minimum length of the segment before the separator for a value to be
# treated as an envelope on import.
MIN_SALT_SEGMENT = config.SALT_LENGTH * 2


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of opening an envelope.

    ``ok`` separates "decrypted to the empty string" from "could not decrypt",
    which the plain ``decrypt`` call cannot express.
    """

    ok: bool
    plaintext: str = ""
    reason: Optional[str] = None

    @classmethod
    def success(cls, plaintext: str) -> "DecryptResult":
        return cls(ok=True, plaintext=plaintext)

    @classmethod
    def failure(cls, reason: str) -> "DecryptResult":
        return cls(ok=False, reason=reason)


class EnvelopeCodec:
    """
    Turns a plaintext field into a storable envelope and back.

    Flow:
    1. Random 8-byte salt and 16-byte IV per envelope
    2. PBKDF2 derives a 256-bit key from magic number + salt
    3. AES-256-CBC with PKCS7 padding encrypts the UTF-8 plaintext
    4. IV is prepended to the ciphertext and base64-encoded after the salt

    The key is derived again for every envelope and is never kept.
    """

    PBKDF2_ITERATIONS = config.PBKDF2_ITERATIONS
    KEY_LENGTH = config.KEY_LENGTH
    SALT_LENGTH = config.SALT_LENGTH
    IV_LENGTH = config.IV_LENGTH
    SEPARATOR = config.ENVELOPE_SEPARATOR

    @staticmethod
    def derive_key(passphrase: str, salt: bytes) -> bytes:
        """
        Derive a 256-bit key from the magic number using PBKDF2-SHA256.

        Args:
            passphrase: User's magic number
            salt: Raw salt bytes (decoded from the envelope's hex prefix)

        Returns:
            32-byte AES key
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EnvelopeCodec.KEY_LENGTH,
            salt=salt,
            iterations=EnvelopeCodec.PBKDF2_ITERATIONS,
        )
        return kdf.derive(passphrase.encode('utf-8'))

    @staticmethod
    def generate_salt() -> str:
        """Cryptographically random salt, hex-encoded (16 characters)."""
        return os.urandom(EnvelopeCodec.SALT_LENGTH).hex()

    @staticmethod
    def encrypt(plaintext: str, passphrase: str) -> str:
        """
        Encrypt one field into an envelope.

        Two calls with the same arguments never return the same envelope:
        both salt and IV are fresh each time.

        Args:
            plaintext: Account name or password
            passphrase: User's magic number

        Returns:
            Envelope string "<salt hex>:<base64(iv || ciphertext)>"
        """
        salt_hex = EnvelopeCodec.generate_salt()
        key = EnvelopeCodec.derive_key(passphrase, bytes.fromhex(salt_hex))
        iv = os.urandom(EnvelopeCodec.IV_LENGTH)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode('utf-8')) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        body = base64.b64encode(iv + ciphertext).decode('ascii')
        return f"{salt_hex}{EnvelopeCodec.SEPARATOR}{body}"

    @staticmethod
    def open_envelope(envelope: str, passphrase: str) -> DecryptResult:
        """
        Decrypt an envelope, reporting why it failed instead of raising.

        Args:
            envelope: Stored envelope string
            passphrase: User's magic number

        Returns:
            DecryptResult with the plaintext, or ok=False and a reason
        """
        if not isinstance(envelope, str):
            return DecryptResult.failure("envelope is not a string")

        salt_hex, _, body = envelope.partition(EnvelopeCodec.SEPARATOR)
        if not salt_hex or not body:
            return DecryptResult.failure("malformed envelope")

        try:
            salt = bytes.fromhex(salt_hex)
        except ValueError:
            return DecryptResult.failure("salt is not hex")

        try:
            raw = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            return DecryptResult.failure("body is not base64")

        iv, ciphertext = raw[:EnvelopeCodec.IV_LENGTH], raw[EnvelopeCodec.IV_LENGTH:]
        if len(iv) < EnvelopeCodec.IV_LENGTH or not ciphertext:
            return DecryptResult.failure("body too short")

        key = EnvelopeCodec.derive_key(passphrase, salt)

        try:
            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            # Bad padding almost always means the wrong magic number
            return DecryptResult.failure("wrong magic number or corrupt data")

        try:
            return DecryptResult.success(data.decode('utf-8'))
        except UnicodeDecodeError:
            return DecryptResult.failure("wrong magic number or corrupt data")

    @staticmethod
    def decrypt(envelope: str, passphrase: str) -> str:
        """
        Decrypt an envelope, returning "" on any failure.

        Kept for compatibility with the browser edition's contract: an empty
        result cannot be told apart from a stored empty string. Use
        ``open_envelope`` when the difference matters.
        """
        return EnvelopeCodec.open_envelope(envelope, passphrase).plaintext


def is_envelope(value) -> bool:
    """
    Heuristic used on import: does ``value`` look already encrypted?

    True for a string with exactly one separator whose first segment is at
    least 16 characters. This is a guess, not a guarantee; a plaintext
    password shaped like "0123456789abcdef:x" is taken as an envelope.
    """
    if not isinstance(value, str):
        return False
    parts = value.split(EnvelopeCodec.SEPARATOR)
    return len(parts) == 2 and len(parts[0]) >= MIN_SALT_SEGMENT
