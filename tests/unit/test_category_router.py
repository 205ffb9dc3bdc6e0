"""Tests for devil_router.routing.category_router"""

import pytest

from devil_router.core.exceptions import CredentialMissingError, ErrorCode
from devil_router.routing import CategoryClassifier, CategoryRouter, default_routing_table
from devil_router.routing.category_router import RoutingResult, summarize

GAME_MESSAGE = "how should I balance the level design for the third unity world map"


class TestRouteByCategory:
    @pytest.mark.asyncio
    async def test_user_selected(self, seeded_store, router):
        result = await router.route_by_category("coding")

        assert result.category == "coding"
        assert result.key_type == "coding_key"
        assert result.model == "qwen/qwen3-coder:free"
        assert result.api_key == "sk-or-v1-coding-secret"
        assert result.reason == "User selected: coding"

    @pytest.mark.asyncio
    async def test_model_id_passed_through_verbatim(self, store, router):
        await store.save("main_brain_key", "sk-main", "main/model")
        await store.save("coding_key", "sk-code", "vendor/model-x")

        result = await router.route_by_category("coding")

        assert result.model == "vendor/model-x"

    @pytest.mark.asyncio
    async def test_model_id_reflects_latest_save(self, seeded_store, router):
        await seeded_store.save("coding_key", "sk-or-v1-coding-secret", "vendor/model-y")

        result = await router.route_by_category("coding")

        assert result.model == "vendor/model-y"

    @pytest.mark.asyncio
    async def test_invalid_category_uses_default(self, seeded_store, router):
        result = await router.route_by_category("totally_bogus_category")

        assert result.category == "main_brain"
        assert result.key_type == "main_brain_key"
        assert "Invalid category" in result.reason
        assert "totally_bogus_category" in result.reason

    @pytest.mark.asyncio
    async def test_missing_key_falls_back_to_default(self, seeded_store, router):
        result = await router.route_by_category("uiux_mockup")

        assert result.category == "main_brain"
        assert result.key_type == "main_brain_key"
        assert result.model == "nousresearch/hermes-3-llama-3.1-405b:free"
        assert result.reason == "Key not found for uiux_mockup_api_key, using main_brain fallback"

    @pytest.mark.asyncio
    async def test_both_keys_missing_raises(self, store, router):
        with pytest.raises(CredentialMissingError) as exc:
            await router.route_by_category("coding")

        assert exc.value.credential_name == "coding_key"
        assert exc.value.fallback_name == "main_brain_key"
        assert exc.value.error_code is ErrorCode.CREDENTIAL_MISSING
        assert "coding_key" in exc.value.message

    @pytest.mark.asyncio
    async def test_default_category_missing_raises_without_retry(self, store, router):
        await store.save("coding_key", "sk-code", "vendor/model-x")

        with pytest.raises(CredentialMissingError) as exc:
            await router.route_by_category("main_brain")

        assert exc.value.credential_name == "main_brain_key"
        assert exc.value.fallback_name is None

    @pytest.mark.asyncio
    async def test_invalid_category_without_default_key(self, store, router):
        with pytest.raises(CredentialMissingError) as exc:
            await router.route_by_category("nope")

        assert exc.value.credential_name == "main_brain_key"

    @pytest.mark.asyncio
    async def test_undecryptable_key_counts_as_missing(self, seeded_store, memory_repo, router):
        record = await memory_repo.get("coding_key")
        record.encrypted_secret = "not-a-fernet-token"
        await memory_repo.upsert(record)

        result = await router.route_by_category("coding")

        assert result.key_type == "main_brain_key"


class TestRouteByMessage:
    @pytest.mark.asyncio
    async def test_typeerror_routes_to_debugging(self, seeded_store, router):
        result = await router.route_by_message("I'm getting a TypeError: undefined is not a function")

        assert result.category == "debugging"
        assert result.key_type == "debugging_api_key"
        assert result.model == "tngtech/deepseek-r1t2-chimera"
        assert result.reason == "Auto-detected: debugging"

    @pytest.mark.asyncio
    async def test_short_message_routes_fast(self, seeded_store, router):
        result = await router.route_by_message("hello")

        assert result.category == "fast"
        assert result.model == "x-ai/grok-4-fast"

    @pytest.mark.asyncio
    async def test_missing_key_fallback_reason(self, seeded_store, router):
        result = await router.route_by_message(GAME_MESSAGE)

        assert result.category == "main_brain"
        assert result.key_type == "main_brain_key"
        assert result.reason == (
            "Auto-detected: game_dev, but key not found for game_dev_key. "
            "Using main_brain fallback."
        )

    @pytest.mark.asyncio
    async def test_default_category(self, seeded_store, router):
        message = "Please compare the political philosophies of Hobbes and Locke in depth."
        result = await router.route_by_message(message)

        assert result.category == "main_brain"
        assert result.reason == "Auto-detected: main_brain"

    @pytest.mark.asyncio
    async def test_no_keys_raises(self, store, router):
        with pytest.raises(CredentialMissingError):
            await router.route_by_message(GAME_MESSAGE)


class TestListCategories:
    @pytest.mark.asyncio
    async def test_reports_every_category(self, seeded_store, router, routing_table):
        statuses = await router.list_categories()

        assert [s.category for s in statuses] == list(routing_table.categories)
        by_name = {s.category: s for s in statuses}
        assert by_name["coding"].has_key
        assert by_name["coding"].model == "qwen/qwen3-coder:free"
        assert not by_name["game_dev"].has_key
        assert by_name["game_dev"].model is None
        assert by_name["main_brain"].is_default
        assert not by_name["coding"].is_default


class TestConstruction:
    def test_rejects_mismatched_table(self, store):
        classifier = CategoryClassifier(default_routing_table())
        with pytest.raises(ValueError):
            CategoryRouter(store, default_routing_table(short_message_length=5), classifier)

    def test_shares_classifier_table(self, store, routing_table):
        classifier = CategoryClassifier(routing_table)
        router = CategoryRouter(store, routing_table, classifier)
        assert router.table is routing_table


class TestRoutingResult:
    def test_api_key_hidden_from_repr(self):
        result = RoutingResult("coding", "coding_key", "vendor/model-x", "sk-or-v1-topsecret", "User selected: coding")
        assert "sk-or-v1-topsecret" not in repr(result)

    def test_to_dict_uses_camel_case(self):
        data = RoutingResult("coding", "coding_key", "vendor/model-x", "sk", "r").to_dict()
        assert data == {
            "category": "coding",
            "keyType": "coding_key",
            "model": "vendor/model-x",
            "apiKey": "sk",
            "reason": "r",
        }

    def test_summarize_masks_key(self):
        result = RoutingResult("coding", "coding_key", "m", "sk-or-v1-0123456789abcdef", "r")
        assert summarize(result)["apiKey"] == "sk-or-...cdef"

    def test_summarize_masks_short_key_completely(self):
        result = RoutingResult("coding", "coding_key", "m", "short", "r")
        assert summarize(result)["apiKey"] == "****"
