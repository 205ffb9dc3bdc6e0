"""
Secret Cipher - encryption capability for stored API keys
==========================================================

The credential store never sees raw cipher primitives; it is handed a
SecretCipher with ``encrypt`` / ``decrypt``. The stock implementation is
Fernet (AES-128-CBC + HMAC-SHA256) from ``cryptography``.

Architecture:
    SecretCipher (ABC)
        └─ FernetSecretCipher (default)
"""

import base64
import logging
from abc import ABC, abstractmethod

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from devil_router.config.secrets import SecretProvider
from devil_router.core.exceptions import ConfigurationError, CredentialDecryptionError

# Passphrase key derivation. Changing either value makes existing records
# undecryptable.
PASSPHRASE_SALT = b"devil-router/credential-store/v1"
PASSPHRASE_ITERATIONS = 480_000

logger = logging.getLogger(__name__)


class SecretCipher(ABC):
    """Symmetric encryption of short text secrets"""

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext* and return printable ciphertext"""
        pass

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt *ciphertext* produced by ``encrypt``

        Raises:
            CredentialDecryptionError: If the token is malformed or was
                encrypted with a different key
        """
        pass


class FernetSecretCipher(SecretCipher):
    """Fernet-backed cipher"""

    def __init__(self, key: str | bytes):
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                "Encryption key must be 32 url-safe base64-encoded bytes "
                "(generate one with `devil-router keys generate-encryption-key`)"
            ) from e

    @classmethod
    def from_passphrase(cls, passphrase: str) -> "FernetSecretCipher":
        """Derive a Fernet key from an arbitrary passphrase with PBKDF2-HMAC-SHA256."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=PASSPHRASE_SALT,
            iterations=PASSPHRASE_ITERATIONS,
        )
        return cls(base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8"))))

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError) as e:
            raise CredentialDecryptionError("Stored secret could not be decrypted") from e


def create_cipher(provider: SecretProvider, key_name: str = "ENCRYPTION_KEY") -> SecretCipher:
    """
    Build the cipher from the encryption key held by *provider*.

    A value that is a valid Fernet key is used as-is; anything else is
    treated as a passphrase. Surrounding whitespace is ignored, so env and
    Docker secret files holding the same value yield the same key.
    """
    raw = (provider.get_secret(key_name) or "").strip()
    if not raw:
        raise ConfigurationError(
            f"Encryption key '{key_name}' is not set",
            details={'key_name': key_name},
        )
    try:
        return FernetSecretCipher(raw)
    except ConfigurationError:
        logger.info("Encryption key '%s' is not a Fernet key, deriving one from it", key_name)
        return FernetSecretCipher.from_passphrase(raw)
