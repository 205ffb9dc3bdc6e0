"""
Category Router - resolves a category to a live credential and model id
"""

from dataclasses import dataclass, field
from typing import Any

from devil_router.core.exceptions import CredentialMissingError, InvalidCategoryError
from devil_router.core.structured_logger import get_logger
from devil_router.persistence.credential_store import CredentialStore, ResolvedCredential

from .category_classifier import CategoryClassifier
from .routing_table import RoutingTable

logger = get_logger("CategoryRouter")


@dataclass(frozen=True)
class RoutingResult:
    """Per-request routing outcome; never persisted"""
    category: str
    key_type: str
    model: str
    api_key: str = field(repr=False)
    reason: str = ""

    def to_dict(self) -> dict[str, str]:
        """camelCase shape consumed by the chat web layer"""
        return {
            'category': self.category,
            'keyType': self.key_type,
            'model': self.model,
            'apiKey': self.api_key,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class CategoryStatus:
    """Availability of one configured category"""
    category: str
    credential_name: str
    model: str | None
    has_key: bool
    is_default: bool = False


class CategoryRouter:
    """
    Routes messages or forced categories to a credential.

    Model ids come from the credential record at lookup time; the router
    never rewrites them. When the preferred credential is missing the
    default category's credential is tried once.
    """

    def __init__(
        self,
        store: CredentialStore,
        table: RoutingTable | None = None,
        classifier: CategoryClassifier | None = None,
    ) -> None:
        self.store = store
        if classifier is not None and table is not None and classifier.table is not table:
            raise ValueError("classifier and router must share the same RoutingTable")
        self.classifier = classifier or CategoryClassifier(table)
        self.table = self.classifier.table

    async def route_by_category(self, category: str) -> RoutingResult:
        """Forced routing: the caller picked the category."""
        try:
            credential_name = self.table.credential_for(category)
        except InvalidCategoryError:
            default = self.table.default_category
            logger.warning("Invalid category, using fallback", requested=str(category), fallback=default)
            return await self._resolve(
                category=default,
                credential_name=self.table.default_rule.credential_name,
                reason=f"Invalid category '{category}', using fallback: {default}",
                fallback_reason=None,
            )

        return await self._resolve(
            category=category,
            credential_name=credential_name,
            reason=f"User selected: {category}",
            fallback_reason=f"Key not found for {credential_name}, using {self.table.default_category} fallback",
        )

    async def route_by_message(self, message: str) -> RoutingResult:
        """Auto routing: classify *message*, then resolve its category."""
        match = self.classifier.detect(message)
        logger.debug("Classified message", category=match.category, stage=match.stage.name,
                     trigger=match.trigger)
        credential_name = self.table.credential_for(match.category)
        return await self._resolve(
            category=match.category,
            credential_name=credential_name,
            reason=f"Auto-detected: {match.category}",
            fallback_reason=(
                f"Auto-detected: {match.category}, but key not found for {credential_name}. "
                f"Using {self.table.default_category} fallback."
            ),
        )

    async def list_categories(self) -> list[CategoryStatus]:
        """Report every configured category with its live model id."""
        statuses = []
        for rule in self.table.rules:
            credential = await self.store.get_by_name(rule.credential_name)
            statuses.append(CategoryStatus(
                category=rule.name,
                credential_name=rule.credential_name,
                model=credential.model_id if credential else None,
                has_key=credential is not None,
                is_default=rule.name == self.table.default_category,
            ))
        return statuses

    async def _resolve(
        self,
        category: str,
        credential_name: str,
        reason: str,
        fallback_reason: str | None,
    ) -> RoutingResult:
        credential = await self.store.get_by_name(credential_name)
        if credential is not None:
            return self._result(category, credential, reason)

        default_name = self.table.default_rule.credential_name
        if fallback_reason is None or credential_name == default_name:
            # Already on the default credential: nothing left to fall back to
            raise CredentialMissingError(credential_name, details={'category': category})

        fallback = await self.store.get_by_name(default_name)
        if fallback is None:
            logger.error("No credential for category or fallback", category=category,
                         credential=credential_name, fallback=default_name)
            raise CredentialMissingError(credential_name, default_name, details={'category': category})

        logger.warning("Credential missing, using fallback", category=category,
                       credential=credential_name, fallback=default_name)
        return self._result(self.table.default_category, fallback, fallback_reason)

    @staticmethod
    def _result(category: str, credential: ResolvedCredential, reason: str) -> RoutingResult:
        result = RoutingResult(
            category=category,
            key_type=credential.name,
            model=credential.model_id,
            api_key=credential.secret,
            reason=reason,
        )
        logger.info("Routed request", category=category, key_type=credential.name,
                    model=credential.model_id, reason=reason)
        return result


def summarize(result: RoutingResult) -> dict[str, Any]:
    """Loggable/printable view of a result with the API key masked."""
    data: dict[str, Any] = result.to_dict()
    key = data.pop('apiKey')
    data['apiKey'] = f"{key[:6]}...{key[-4:]}" if len(key) > 12 else "****"
    return data
