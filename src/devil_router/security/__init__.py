"""Encryption of stored API keys."""

from devil_router.security.encryption import FernetSecretCipher, SecretCipher, create_cipher

__all__ = ["FernetSecretCipher", "SecretCipher", "create_cipher"]
