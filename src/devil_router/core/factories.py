"""Dependency factories: build the routing core from Settings."""

from __future__ import annotations

from devil_router.config.secrets import SecretProvider, create_secret_provider
from devil_router.config.settings import Settings, build_routing_table
from devil_router.persistence import (
    CredentialRepository,
    CredentialStore,
    InMemoryCredentialRepository,
    SQLiteCredentialRepository,
)
from devil_router.routing import CategoryClassifier, CategoryRouter, KeyProber, RoutingTable
from devil_router.security.encryption import SecretCipher, create_cipher

from .structured_logger import get_logger

logger = get_logger("Factories")


def create_repository(settings: Settings) -> CredentialRepository:
    """Return the credential repository selected by ``store.backend``."""
    if settings.store.backend == "memory":
        logger.info("Creating InMemoryCredentialRepository")
        return InMemoryCredentialRepository()
    logger.info("Creating SQLiteCredentialRepository", db_path=str(settings.store.db_path))
    return SQLiteCredentialRepository(db_path=settings.store.db_path)


def create_provider(settings: Settings) -> SecretProvider:
    return create_secret_provider(
        settings.encryption.secret_backend,
        secrets_dir=settings.encryption.secrets_dir,
    )


def create_secret_cipher(settings: Settings, provider: SecretProvider | None = None) -> SecretCipher:
    """Return the cipher keyed by ``encryption.key_name``."""
    return create_cipher(provider or create_provider(settings), settings.encryption.key_name)


class DependencyContainer:
    """Wires the routing core from a Settings object."""

    def __init__(
        self,
        settings: Settings,
        repository: CredentialRepository | None = None,
        cipher: SecretCipher | None = None,
    ) -> None:
        self.settings = settings
        self.routing_table: RoutingTable = build_routing_table(settings)
        self.repository = repository or create_repository(settings)
        self.cipher = cipher or create_secret_cipher(settings)
        self.store = CredentialStore(self.repository, self.cipher)
        self.classifier = CategoryClassifier(self.routing_table)
        self.router = CategoryRouter(self.store, self.routing_table, self.classifier)
        self.prober = KeyProber(
            self.store,
            base_url=settings.provider.base_url,
            timeout=settings.provider.timeout_seconds,
        )
        logger.info(
            "DependencyContainer initialized",
            categories=len(self.routing_table.rules),
            store_backend=settings.store.backend,
        )
