"""
Secret Providers
================

Where the credential-store encryption key comes from:
- Environment variables (.env, process environment)
- Docker secrets (/run/secrets/)
- A composite that tries several providers in order

Architecture:
    SecretProvider (ABC)
        ├─ EnvSecretProvider (default)
        ├─ DockerSecretProvider
        └─ CompositeSecretProvider
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SecretProvider(ABC):
    """Read-only access to deployment secrets"""

    @abstractmethod
    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the secret stored under *key*, or *default*"""
        pass

    @abstractmethod
    def has_secret(self, key: str) -> bool:
        """Return True if *key* is present"""
        pass

    def get_required(self, key: str) -> str:
        """
        Return a secret that must exist

        Raises:
            ValueError: If secret not found
        """
        value = self.get_secret(key)
        if value is None:
            raise ValueError(f"Required secret '{key}' not found in {type(self).__name__}")
        return value


class EnvSecretProvider(SecretProvider):
    """Reads secrets from environment variables, optionally prefixed"""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        logger.debug("EnvSecretProvider initialized (prefix: %s)", prefix or "none")

    def _env_key(self, key: str) -> str:
        return f"{self.prefix}{key}" if self.prefix else key

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = os.getenv(self._env_key(key), default)
        if value is None:
            logger.debug("Secret '%s' not found in environment", key)
        return value

    def has_secret(self, key: str) -> bool:
        return self._env_key(key) in os.environ


class DockerSecretProvider(SecretProvider):
    """
    Reads secrets from files under /run/secrets/

    Example:
        # docker-compose.yml
        secrets:
          ENCRYPTION_KEY:
            file: ./secrets/encryption_key.txt
    """

    def __init__(self, secrets_dir: str | Path = "/run/secrets"):
        self.secrets_dir = Path(secrets_dir)
        logger.debug("DockerSecretProvider initialized (dir: %s)", self.secrets_dir)

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        secret_file = self.secrets_dir / key
        try:
            return secret_file.read_text().strip()
        except FileNotFoundError:
            return default
        except OSError as e:
            logger.warning("Error reading Docker secret '%s': %s", key, e)
            return default

    def has_secret(self, key: str) -> bool:
        return (self.secrets_dir / key).is_file()


class CompositeSecretProvider(SecretProvider):
    """Tries each provider in order and returns the first hit"""

    def __init__(self, providers: list[SecretProvider]):
        self.providers = providers

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for provider in self.providers:
            if provider.has_secret(key):
                return provider.get_secret(key)
        return default

    def has_secret(self, key: str) -> bool:
        return any(provider.has_secret(key) for provider in self.providers)


def create_secret_provider(backend: str = "env", **kwargs) -> SecretProvider:
    """
    Create a secret provider

    Args:
        backend: Backend type ("env", "docker", "composite")
        **kwargs: Backend-specific configuration (prefix, secrets_dir, backends)

    Example:
        provider = create_secret_provider("composite", backends=["docker", "env"])
    """
    if backend == "env":
        return EnvSecretProvider(prefix=kwargs.get("prefix", ""))

    elif backend == "docker":
        return DockerSecretProvider(secrets_dir=kwargs.get("secrets_dir", "/run/secrets"))

    elif backend == "composite":
        backends = kwargs.pop("backends", ["docker", "env"])
        return CompositeSecretProvider([create_secret_provider(b, **kwargs) for b in backends])

    else:
        raise ValueError(f"Unknown secret provider backend: {backend}")
