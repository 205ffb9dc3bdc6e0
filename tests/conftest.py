"""
Pytest configuration for devil-router tests: validates the environment,
registers markers, and provides credential-store fixtures.
"""

import sys

import pytest
import pytest_asyncio

from devil_router.persistence import CredentialStore, InMemoryCredentialRepository
from devil_router.routing import CategoryRouter, default_routing_table
from devil_router.security.encryption import FernetSecretCipher

# =============================================================================
# SHARED FIXTURES
# =============================================================================

# Model ids as an admin would paste them from the provider catalogue
SEED_CREDENTIALS = {
    "main_brain_key": ("sk-or-v1-main-brain-secret", "nousresearch/hermes-3-llama-3.1-405b:free"),
    "debugging_api_key": ("sk-or-v1-debugging-secret", "tngtech/deepseek-r1t2-chimera"),
    "coding_key": ("sk-or-v1-coding-secret", "qwen/qwen3-coder:free"),
    "fast_api_key": ("sk-or-v1-fast-secret", "x-ai/grok-4-fast"),
}


@pytest.fixture
def cipher():
    """Fernet cipher with a fresh random key."""
    return FernetSecretCipher(FernetSecretCipher.generate_key())


@pytest.fixture
def memory_repo():
    return InMemoryCredentialRepository()


@pytest.fixture
def store(memory_repo, cipher):
    """Empty credential store over an in-memory repository."""
    return CredentialStore(memory_repo, cipher)


@pytest_asyncio.fixture
async def seeded_store(store):
    """Credential store holding SEED_CREDENTIALS."""
    for name, (secret, model_id) in SEED_CREDENTIALS.items():
        await store.save(name, secret, model_id)
    return store


@pytest.fixture
def routing_table():
    return default_routing_table()


@pytest.fixture
def router(store, routing_table):
    return CategoryRouter(store, routing_table)


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def environment_error_banner(missing: list[str]) -> str:
    """Message printed when test dependencies are not installed."""
    rule = "=" * 70
    return "\n".join([
        "",
        rule,
        " TEST ENVIRONMENT ERROR",
        rule,
        "",
        f" Missing dependencies: {', '.join(missing)}",
        "",
        " Run: pip install -e '.[dev]'",
        rule,
    ])


def pytest_configure(config):
    """Validate test environment and register custom markers."""
    missing = []
    for mod in ("click", "cryptography", "httpx", "pydantic", "pydantic_settings", "yaml"):
        try:
            __import__(mod)
        except ImportError:
            missing.append(mod)

    if missing:
        print(environment_error_banner(missing), file=sys.stderr)
        raise SystemExit(1)

    config.addinivalue_line(
        "markers", "unit: Fast unit tests with no external dependencies"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds"
    )
