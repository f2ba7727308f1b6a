"""
Session Payload Encryption

Seals serialized session payloads into an authenticated envelope and opens
them back. Active only when the store is configured with a secret.

Envelope wire format (JSON): {"ct": "<hex ciphertext>", "mac": "<hex HMAC>"}

The MAC is an HMAC over the ciphertext hex keyed by the secret. It is
checked, in constant time, before any decryption is attempted.

Algorithms:
- aes-256-gcm (default): AES-256-GCM keyed by SHA-256(secret) with a random
  96-bit nonce per seal; ct = hex(nonce || ciphertext || tag);
  MAC = HMAC-SHA256. Equal payloads produce different envelopes.
- aes-256-ecb (legacy): the wire format written by Node.js connect-redis
  stores: AES-256-ECB keyed through OpenSSL EVP_BytesToKey (MD5, one round,
  no salt) with PKCS#7 padding and no IV; MAC = HMAC-SHA1. Deterministic:
  equal payloads produce equal envelopes, which leaks equality across
  sessions. Use only to read and write sessions shared with such stores.
"""

import hashlib
import hmac
import json
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, Field, ValidationError

from kvsession.core.exceptions import (
    ConfigurationError,
    IntegrityError,
    SerializationError,
)
from kvsession.observability.logging import get_logger

logger = get_logger(__name__)

AES_KEY_SIZE = 32  # 256 bits
GCM_NONCE_SIZE = 12  # 96 bits
AES_BLOCK_BITS = 128


# =============================================================================
# Envelope Model
# =============================================================================


class EncryptedEnvelope(BaseModel):
    """
    Ciphertext plus MAC, stored in place of the plaintext payload.

    Attributes:
        ciphertext: Hex-encoded ciphertext (wire name "ct").
        mac: Hex-encoded HMAC over the ciphertext hex.
    """

    ciphertext: str = Field(..., alias="ct")
    mac: str

    model_config = {"frozen": True, "populate_by_name": True}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, text: str, session_id: Optional[str] = None) -> "EncryptedEnvelope":
        """
        Parse a stored envelope.

        Raises:
            SerializationError: If the text is not an envelope object.
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise SerializationError(
                f"Malformed encrypted envelope: {e}", session_id=session_id
            ) from e


# =============================================================================
# Key Derivation
# =============================================================================


def evp_bytes_to_key(password: bytes, key_len: int = AES_KEY_SIZE) -> bytes:
    """
    OpenSSL EVP_BytesToKey with MD5, one round and no salt.

    This is the derivation Node.js crypto.createCipher() applies to its
    password argument. The ECB mode needs no IV, so only key bytes are
    produced.
    """
    derived = b""
    block = b""
    while len(derived) < key_len:
        block = hashlib.md5(block + password).digest()
        derived += block
    return derived[:key_len]


# =============================================================================
# Ciphers
# =============================================================================


class _GcmCipher:
    digestmod = hashlib.sha256

    def __init__(self, secret: bytes) -> None:
        self._aead = AESGCM(hashlib.sha256(secret).digest())

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(GCM_NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, data: bytes) -> bytes:
        if len(data) <= GCM_NONCE_SIZE:
            raise ValueError("ciphertext too short")
        nonce, ciphertext = data[:GCM_NONCE_SIZE], data[GCM_NONCE_SIZE:]
        return self._aead.decrypt(nonce, ciphertext, None)


class _EcbCipher:
    digestmod = hashlib.sha1

    def __init__(self, secret: bytes) -> None:
        self._key = evp_bytes_to_key(secret)

    def encrypt(self, plaintext: bytes) -> bytes:
        padder = padding.PKCS7(AES_BLOCK_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.ECB()).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, data: bytes) -> bytes:
        decryptor = Cipher(algorithms.AES(self._key), modes.ECB()).decryptor()
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()


_CIPHERS: dict[str, type] = {
    "aes-256-gcm": _GcmCipher,
    "aes-256-ecb": _EcbCipher,
}

LEGACY_ALGORITHM = "aes-256-ecb"
DEFAULT_ALGORITHM = "aes-256-gcm"


# =============================================================================
# CryptoBox
# =============================================================================


class CryptoBox:
    """
    Seals and opens serialized session payloads.

    Example:
        >>> box = CryptoBox("keyboard cat")
        >>> envelope = box.seal('{"cookie":{}}')
        >>> box.open(envelope)
        '{"cookie":{}}'
    """

    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> None:
        """
        Args:
            secret: Shared secret keying both the cipher and the MAC.
            algorithm: aes-256-gcm or aes-256-ecb.

        Raises:
            ConfigurationError: For an empty secret or unknown algorithm.
        """
        if not secret:
            raise ConfigurationError("Encryption requires a non-empty secret", option="secret")
        if algorithm not in _CIPHERS:
            raise ConfigurationError(
                f"Unsupported algorithm {algorithm!r}; expected one of {sorted(_CIPHERS)}",
                option="algorithm",
            )

        self._secret = secret.encode("utf-8")
        self._algorithm = algorithm
        self._cipher = _CIPHERS[algorithm](self._secret)

        if algorithm == LEGACY_ALGORITHM:
            logger.warning(
                "legacy_session_cipher",
                algorithm=algorithm,
                detail="deterministic encryption without nonce; equal sessions encrypt identically",
            )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def digest(self, ciphertext: str) -> str:
        """Hex HMAC of the ciphertext hex, keyed by the secret."""
        return hmac.new(
            self._secret, ciphertext.encode("utf-8"), self._cipher.digestmod
        ).hexdigest()

    def seal(self, payload: str) -> EncryptedEnvelope:
        """
        Encrypt a serialized payload.

        The payload is re-serialized as a JSON string literal before
        encryption; that literal is the transport form both algorithms
        encrypt.

        Raises:
            SerializationError: If the payload is not valid Unicode.
        """
        transport = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        try:
            plaintext = transport.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SerializationError(f"Session payload is not valid Unicode: {e}") from e

        ciphertext = self._cipher.encrypt(plaintext).hex()
        return EncryptedEnvelope(ciphertext=ciphertext, mac=self.digest(ciphertext))

    def open(self, envelope: EncryptedEnvelope) -> str:
        """
        Verify and decrypt an envelope.

        Raises:
            IntegrityError: If the MAC does not match (nothing is decrypted)
                or decryption of the verified ciphertext fails.
            SerializationError: If the decrypted transport form is not a
                JSON string literal.
        """
        expected = self.digest(envelope.ciphertext)
        if not hmac.compare_digest(expected.encode("ascii"), envelope.mac.encode("utf-8")):
            raise IntegrityError()

        try:
            plaintext = self._cipher.decrypt(bytes.fromhex(envelope.ciphertext))
            transport = plaintext.decode("utf-8")
        except (ValueError, InvalidTag) as e:
            raise IntegrityError(f"Failed to decrypt session: {e!r}") from e

        try:
            payload = json.loads(transport)
        except ValueError as e:
            raise SerializationError(f"Malformed decrypted payload: {e}") from e

        if not isinstance(payload, str):
            raise SerializationError("Decrypted payload is not a serialized session")

        return payload
