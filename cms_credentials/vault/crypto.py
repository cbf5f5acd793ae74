"""
Vault Crypto Core — Key stretching, encryption/decryption, and envelope codec.

Protects credential strings stored in plaintext configuration:
- Key stretching: PBKDF2-HMAC-SHA256(passphrase, salt 64B, 100k) → 32B key
- Cipher: AES-256-GCM with a random 128-bit IV and a 128-bit auth tag
- Envelope: hex(salt):hex(iv):hex(ciphertext):hex(tag)

Every call draws a fresh salt and IV from ``os.urandom``; nothing is kept
between calls, so all functions here are safe to call from any thread.

Security Note:
    Never log plaintext, passphrases, derived keys or envelopes.
    Key derivation takes tens of milliseconds; async callers
    should run it in a worker thread.
"""
import os
import re
import logging
import secrets
from typing import NamedTuple, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import (
    MissingInput,
    MalformedEnvelope,
    EncryptionFailure,
    DecryptionFailure,
)

logger = logging.getLogger("cms.vault")

SALT_LENGTH = 64
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32  # AES-256
KDF_ITERATIONS = 100_000
ENVELOPE_SEPARATOR = ":"

# Value shipped in the sample configuration; never acceptable as a real key.
EXAMPLE_PASSPHRASE = "change-this-to-a-random-secret-key-in-production"
MIN_PASSPHRASE_LENGTH = 32

_HEX_FIELD = re.compile(r"[0-9a-fA-F]*")

Passphrase = Union[str, bytes]


def _passphrase_bytes(passphrase: Passphrase) -> bytes:
    if isinstance(passphrase, bytes):
        return passphrase
    return passphrase.encode("utf-8")


# ---------------------------------------------------------------------------
# Envelope codec
# ---------------------------------------------------------------------------

class Envelope(NamedTuple):
    """Serialized container for one encrypted value.

    Fields are kept as raw bytes; the text form is produced by
    :meth:`serialize` and read back by :meth:`parse`.
    """

    salt: bytes
    iv: bytes
    ciphertext: bytes
    tag: bytes

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        """Parse ``salt:iv:ciphertext:tag`` into an Envelope.

        Args:
            text: Envelope string as produced by :func:`encrypt`.

        Returns:
            Parsed Envelope.

        Raises:
            MissingInput: If text is empty or blank.
            MalformedEnvelope: If the field count is not 4, a field is not
                hex, or the salt/IV/tag lengths are wrong.
        """
        text = text.strip() if text else text
        if not text:
            raise MissingInput("Encrypted value is required")
        parts = text.split(ENVELOPE_SEPARATOR)
        if len(parts) != 4:
            raise MalformedEnvelope(
                f"Envelope must have 4 fields, got {len(parts)}"
            )
        decoded = []
        for part in parts:
            if not _HEX_FIELD.fullmatch(part) or len(part) % 2:
                raise MalformedEnvelope("Envelope fields must be hex-encoded")
            try:
                decoded.append(bytes.fromhex(part))
            except ValueError:
                raise MalformedEnvelope(
                    "Envelope fields must be hex-encoded"
                ) from None
        salt, iv, ciphertext, tag = decoded
        if len(salt) != SALT_LENGTH:
            raise MalformedEnvelope(
                f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}"
            )
        if len(iv) != IV_LENGTH:
            raise MalformedEnvelope(
                f"IV must be {IV_LENGTH} bytes, got {len(iv)}"
            )
        if len(tag) != TAG_LENGTH:
            raise MalformedEnvelope(
                f"Auth tag must be {TAG_LENGTH} bytes, got {len(tag)}"
            )
        if not ciphertext:
            raise MalformedEnvelope("Envelope ciphertext is empty")
        return cls(salt, iv, ciphertext, tag)

    def serialize(self) -> str:
        """Return the lowercase-hex ``salt:iv:ciphertext:tag`` form."""
        return ENVELOPE_SEPARATOR.join(field.hex() for field in self)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return (
            f"<Envelope salt={len(self.salt)}B iv={len(self.iv)}B "
            f"ciphertext={len(self.ciphertext)}B tag={len(self.tag)}B>"
        )


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: Passphrase, salt: bytes) -> bytes:
    """Derive a 32-byte AES key using PBKDF2-HMAC-SHA256.

    The iteration count is fixed so every envelope written with a given
    passphrase stays decryptable.

    Args:
        passphrase: Process passphrase (``ENCRYPTION_KEY``).
        salt: 64-byte random salt stored in the envelope.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(_passphrase_bytes(passphrase))


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, passphrase: Passphrase) -> str:
    """Encrypt a credential string into an envelope.

    Args:
        plaintext: Value to protect (database URL, auth token, ...).
        passphrase: Process passphrase.

    Returns:
        Envelope string ``salt:iv:ciphertext:tag`` in lowercase hex.

    Raises:
        MissingInput: If plaintext or passphrase is empty.
        EncryptionFailure: If the random source or the cipher fails.
    """
    if not plaintext:
        raise MissingInput("Text to encrypt is required")
    if not passphrase:
        raise MissingInput("Encryption passphrase is required")
    try:
        salt = os.urandom(SALT_LENGTH)
        iv = os.urandom(IV_LENGTH)
        key = derive_key(passphrase, salt)
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    except Exception as err:
        logger.error("Encryption failed: %s", type(err).__name__)
        raise EncryptionFailure("Failed to encrypt data") from err
    # AESGCM appends the tag to the ciphertext.
    envelope = Envelope(salt, iv, sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:])
    return envelope.serialize()


def decrypt(envelope: str, passphrase: Passphrase) -> str:
    """Decrypt an envelope produced by :func:`encrypt`.

    The auth tag is verified before any plaintext is returned.

    Args:
        envelope: Envelope string ``salt:iv:ciphertext:tag``.
        passphrase: Passphrase used at encryption time.

    Returns:
        Decrypted plaintext string.

    Raises:
        MissingInput: If envelope or passphrase is empty.
        MalformedEnvelope: If the envelope cannot be parsed.
        DecryptionFailure: If authentication fails (wrong passphrase,
            corrupted ciphertext or tampered tag).
    """
    if not envelope or not envelope.strip():
        raise MissingInput("Encrypted value is required")
    if not passphrase:
        raise MissingInput("Encryption passphrase is required")
    parsed = Envelope.parse(envelope)
    key = derive_key(passphrase, parsed.salt)
    try:
        data = AESGCM(key).decrypt(
            parsed.iv, parsed.ciphertext + parsed.tag, None,
        )
        return data.decode("utf-8")
    except (InvalidTag, ValueError):
        # Same error for wrong key and tampering; drop the cause.
        raise DecryptionFailure(
            "Failed to decrypt data. Invalid encryption key or corrupted data."
        ) from None


# ---------------------------------------------------------------------------
# Passphrase helpers
# ---------------------------------------------------------------------------

def validate_passphrase_strength(passphrase: Optional[Passphrase]) -> bool:
    """Return True if the passphrase is acceptable for production use.

    Rejects empty values, values shorter than 32 characters, and the
    example value from the sample configuration.
    """
    if not passphrase:
        return False
    if isinstance(passphrase, bytes):
        passphrase = passphrase.decode("utf-8", errors="replace")
    if len(passphrase) < MIN_PASSPHRASE_LENGTH:
        return False
    if passphrase == EXAMPLE_PASSPHRASE:
        return False
    return True


def generate_passphrase() -> str:
    """Generate a random 32-byte passphrase as 64 hex characters.

    This is a utility for the setup tool and for operators.
    """
    return secrets.token_hex(32)
