"""
Key Probe - checks that a stored API key is accepted by the provider
=====================================================================

Issues ``GET {base_url}/models`` with the decrypted key. Every outcome is
reported as a KeyProbeResult; the prober itself does not raise for bad
keys, missing keys or network failures.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import httpx

from devil_router.core.exceptions import CredentialDecryptionError
from devil_router.core.structured_logger import get_logger
from devil_router.persistence.credential_store import CredentialStore

logger = get_logger("KeyProber")

DEFAULT_PROVIDER_URL = "https://openrouter.ai/api/v1"


class ProbeStatus(Enum):
    WORKING = "WORKING"
    INVALID = "INVALID"
    NOT_FOUND = "NOT_FOUND"
    DECRYPTION_ERROR = "DECRYPTION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"


@dataclass
class KeyProbeResult:
    credential_name: str
    status: ProbeStatus
    message: str
    model_id: str | None = None
    models_count: int | None = None
    error_details: dict[str, Any] | None = None
    tested_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def success(self) -> bool:
        return self.status is ProbeStatus.WORKING

    def to_dict(self) -> dict[str, Any]:
        return {
            'success': self.success,
            'status': self.status.value,
            'message': self.message,
            'key_type': self.credential_name,
            'model_id': self.model_id,
            'models_count': self.models_count,
            'error_details': self.error_details,
            'tested_at': self.tested_at.isoformat(),
        }


class KeyProber:
    """Validates stored credentials against the provider's model listing"""

    def __init__(
        self,
        store: CredentialStore,
        base_url: str = DEFAULT_PROVIDER_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def probe(self, name: str) -> KeyProbeResult:
        name = name.strip()
        log = logger.bind(credential=name)
        try:
            credential = await self.store.reveal(name)
        except CredentialDecryptionError:
            return KeyProbeResult(name, ProbeStatus.DECRYPTION_ERROR, "Failed to decrypt API key")

        if credential is None:
            return KeyProbeResult(name, ProbeStatus.NOT_FOUND, f"No API key found for type: {name}")

        headers = {
            "Authorization": f"Bearer {credential.secret}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/models", headers=headers)
        except httpx.HTTPError as e:
            log.warning("Key probe network error", error=str(e))
            return KeyProbeResult(
                name,
                ProbeStatus.NETWORK_ERROR,
                f"Network error while testing API key: {e}",
                model_id=credential.model_id,
            )

        if response.is_success:
            data = _json_or_empty(response).get("data")
            models = data if isinstance(data, list) else []
            log.info("Key probe succeeded", models_count=len(models))
            return KeyProbeResult(
                name,
                ProbeStatus.WORKING,
                f"API key is valid and working! Found {len(models)} available models.",
                model_id=credential.model_id,
                models_count=len(models),
            )

        error_data = _json_or_empty(response)
        error = error_data.get("error")
        detail = error.get("message") if isinstance(error, dict) else None
        log.warning("Key probe rejected", status_code=response.status_code)
        return KeyProbeResult(
            name,
            ProbeStatus.INVALID,
            f"API key test failed: {detail or response.reason_phrase or response.status_code}",
            model_id=credential.model_id,
            error_details=error_data or None,
        )


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
