"""
Credential Store - named API keys paired with their target model ids
=====================================================================

The router only ever calls ``get_by_name``. The admin operations (save,
delete, list) keep the invariant that a stored record always has both an
encrypted secret and a model id.
"""

from dataclasses import dataclass, field
from typing import Any

from devil_router.core.exceptions import CredentialDecryptionError, ValidationError
from devil_router.core.structured_logger import get_logger
from devil_router.security.encryption import SecretCipher

from .repositories import CredentialRecord, CredentialRepository

logger = get_logger("CredentialStore")


@dataclass(frozen=True)
class ResolvedCredential:
    """A usable credential with its secret already decrypted"""
    name: str
    model_id: str
    secret: str = field(repr=False)


class CredentialStore:
    """Encrypting facade over a CredentialRepository"""

    def __init__(self, repository: CredentialRepository, cipher: SecretCipher) -> None:
        self.repository = repository
        self.cipher = cipher

    async def reveal(self, name: str) -> ResolvedCredential | None:
        """
        Load and decrypt *name*.

        Returns None when the record is absent or partial.

        Raises:
            CredentialDecryptionError: If the stored secret cannot be decrypted
        """
        record = await self.repository.get(name)
        if record is None:
            logger.debug("Credential not found", credential=name)
            return None
        if not record.is_usable:
            logger.warning("Credential is incomplete, ignoring", credential=name)
            return None

        try:
            secret = self.cipher.decrypt(record.encrypted_secret)
        except CredentialDecryptionError as e:
            e.details.setdefault('credential_name', name)
            raise
        if not secret:
            logger.warning("Credential decrypted to an empty secret, ignoring", credential=name)
            return None
        return ResolvedCredential(name=record.name, model_id=record.model_id, secret=secret)

    async def get_by_name(self, name: str) -> ResolvedCredential | None:
        """Like ``reveal``, but an undecryptable record counts as not found."""
        try:
            return await self.reveal(name)
        except CredentialDecryptionError:
            logger.error("Credential could not be decrypted, treating as missing", credential=name)
            return None

    async def has_credential(self, name: str) -> bool:
        """True when ``get_by_name`` would return a usable credential."""
        return await self.get_by_name(name) is not None

    async def save(
        self,
        name: str,
        secret: str,
        model_id: str,
        created_by: str = "admin",
    ) -> bool:
        """
        Encrypt and upsert a credential.

        Returns True if the credential was created, False if it was updated.

        Raises:
            ValidationError: If name, secret or model id is empty
        """
        name = (name or "").strip()
        secret = (secret or "").strip()
        model_id = (model_id or "").strip()

        missing = [
            label for label, value in (("name", name), ("secret", secret), ("model_id", model_id))
            if not value
        ]
        if missing:
            raise ValidationError(
                f"Credential {', '.join(missing)} must not be empty",
                details={'missing': missing, 'credential_name': name},
            )

        record = CredentialRecord(
            name=name,
            encrypted_secret=self.cipher.encrypt(secret),
            model_id=model_id,
            created_by=(created_by or "admin").strip(),
        )
        created = await self.repository.upsert(record)
        logger.info(
            "Saved credential",
            credential=name,
            model_id=model_id,
            action="created" if created else "updated",
        )
        return created

    async def delete(self, name: str) -> bool:
        deleted = await self.repository.delete(name.strip())
        if deleted:
            logger.info("Deleted credential", credential=name)
        return deleted

    async def list_records(self) -> list[CredentialRecord]:
        """All records, secrets left encrypted."""
        return await self.repository.list_records()

    async def verify(self) -> dict[str, Any]:
        """Health check used by ``devil-router doctor``."""
        try:
            count = await self.repository.count()
        except Exception as e:
            logger.error("Credential store health check failed", error=str(e))
            return {'healthy': False, 'message': f"Persistence layer error: {e}", 'key_count': 0}
        return {'healthy': True, 'message': "Persistence layer is healthy", 'key_count': count}
