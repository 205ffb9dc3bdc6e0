"""
Persistence Layer - Data Access Objects (DAO) Pattern
======================================================

Abstract credential repository plus in-memory and SQLite backends, and the
encrypting CredentialStore the router reads from.
"""

from .credential_store import CredentialStore, ResolvedCredential
from .inmemory_impl import InMemoryCredentialRepository
from .repositories import CredentialRecord, CredentialRepository
from .sqlite_impl import SQLiteCredentialRepository

__all__ = [
    "CredentialRecord",
    "CredentialRepository",
    "CredentialStore",
    "InMemoryCredentialRepository",
    "ResolvedCredential",
    "SQLiteCredentialRepository",
]
