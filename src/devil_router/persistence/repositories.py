"""
Abstract Repository Interfaces
================================

Defines the contract for credential persistence.
Implementations can use any backend (SQLite, PostgreSQL, Turso, etc.).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class CredentialRecord:
    """One named, encrypted API key and the model it targets"""
    name: str
    encrypted_secret: str
    model_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str = "admin"

    @property
    def is_usable(self) -> bool:
        """Both the secret and the model id must be present."""
        return bool(self.encrypted_secret and self.encrypted_secret.strip()) and bool(
            self.model_id and self.model_id.strip()
        )


class CredentialRepository(ABC):
    """
    Abstract interface for credential persistence.

    Implementations:
    - InMemoryCredentialRepository: process-local dict, for tests and demos
    - SQLiteCredentialRepository: local SQLite database
    """

    @abstractmethod
    async def get(self, name: str) -> CredentialRecord | None:
        """Get a record by its unique name"""
        pass

    @abstractmethod
    async def upsert(self, record: CredentialRecord) -> bool:
        """
        Insert or update a record keyed by name.
        Returns True if a new record was created, False if one was updated.
        created_at and created_by from the first insert survive an update.
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete a record; returns False if it did not exist"""
        pass

    @abstractmethod
    async def list_records(
        self,
        limit: int | None = None,
        offset: int = 0
    ) -> list[CredentialRecord]:
        """List records ordered by name"""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Count stored records"""
        pass
