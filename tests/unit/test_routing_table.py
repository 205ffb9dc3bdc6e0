"""Tests for devil_router.routing.routing_table"""

import dataclasses

import pytest

from devil_router.core.exceptions import ConfigurationError, InvalidCategoryError
from devil_router.routing.routing_table import (
    CategoryRule,
    RoutingTable,
    RuleStage,
    default_routing_table,
)

EXPECTED_CREDENTIALS = {
    "main_brain": "main_brain_key",
    "coding": "coding_key",
    "debugging": "debugging_api_key",
    "fast": "fast_api_key",
    "uiux_mockup": "uiux_mockup_api_key",
    "image_generation": "image_generation_api_key",
    "game_dev": "game_dev_key",
    "canvas_notes": "canvas_notes_api_key",
}


class TestDefaultTable:
    def test_categories(self):
        table = default_routing_table()
        assert set(table.categories) == set(EXPECTED_CREDENTIALS)

    @pytest.mark.parametrize("category,credential", EXPECTED_CREDENTIALS.items())
    def test_credential_mapping(self, category, credential):
        assert default_routing_table().credential_for(category) == credential

    def test_defaults(self):
        table = default_routing_table()
        assert table.default_category == "main_brain"
        assert table.fast_category == "fast"
        assert table.short_message_length == 30
        assert table.quick_message_length == 100

    def test_scan_order_follows_stages(self):
        names = [r.name for r in default_routing_table().scan_order()]
        assert names == ["debugging", "canvas_notes", "uiux_mockup", "image_generation", "coding", "game_dev"]

    def test_threshold_override(self):
        table = default_routing_table(short_message_length=10)
        assert table.short_message_length == 10


class TestImmutability:
    def test_table_is_frozen(self):
        table = default_routing_table()
        with pytest.raises(dataclasses.FrozenInstanceError):
            table.default_category = "coding"

    def test_rule_is_frozen(self):
        rule = default_routing_table().rule_for("coding")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.triggers = ()

    def test_index_is_read_only(self):
        table = default_routing_table()
        with pytest.raises(TypeError):
            table._by_name["evil"] = table.default_rule


class TestLookup:
    def test_unknown_category_raises(self):
        with pytest.raises(InvalidCategoryError) as exc:
            default_routing_table().rule_for("totally_bogus_category")
        assert exc.value.category == "totally_bogus_category"

    def test_unhashable_category_raises_invalid(self):
        with pytest.raises(InvalidCategoryError):
            default_routing_table().rule_for(["coding"])

    def test_contains(self):
        table = default_routing_table()
        assert "coding" in table
        assert "video" not in table


class TestCategoryRule:
    def test_triggers_lowercased_and_blank_dropped(self):
        rule = CategoryRule("x", "x_key", RuleStage.GENERAL, ["TypeError", "", "  ", "Bug"])
        assert rule.triggers == ("typeerror", "bug")

    def test_stage_coerced_from_int(self):
        assert CategoryRule("x", "x_key", 1).stage is RuleStage.URGENT

    def test_first_match(self):
        rule = CategoryRule("x", "x_key", RuleStage.GENERAL, ("beta", "alpha"))
        assert rule.first_match("alpha and beta") == "beta"
        assert rule.first_match("gamma") is None


class TestValidation:
    def _rules(self):
        return (
            CategoryRule("main", "main_key", RuleStage.DEFAULT),
            CategoryRule("fast", "fast_key", RuleStage.FAST),
        )

    def test_duplicate_category(self):
        rules = self._rules() + (CategoryRule("main", "other", RuleStage.GENERAL),)
        with pytest.raises(ConfigurationError, match="Duplicate"):
            RoutingTable(rules=rules, default_category="main")

    def test_missing_default(self):
        with pytest.raises(ConfigurationError, match="default"):
            RoutingTable(rules=self._rules(), default_category="nope")

    def test_missing_fast(self):
        with pytest.raises(ConfigurationError, match="fast"):
            RoutingTable(rules=self._rules(), default_category="main", fast_category="nope")

    def test_quick_below_short(self):
        with pytest.raises(ConfigurationError):
            RoutingTable(
                rules=self._rules(),
                default_category="main",
                short_message_length=50,
                quick_message_length=40,
            )


class TestFromMapping:
    def test_builds_table(self):
        table = RoutingTable.from_mapping(
            [
                {"name": "main", "credential_name": "main_key", "stage": "default"},
                {"name": "fast", "credential_name": "fast_key", "stage": "FAST", "triggers": ["Quick"]},
                {"name": "bugs", "credential_name": "bug_key", "stage": 1, "triggers": ["error"]},
            ],
            default_category="main",
        )
        assert table.rule_for("bugs").stage is RuleStage.URGENT
        assert table.fast_rule.triggers == ("quick",)

    def test_missing_field(self):
        with pytest.raises(ConfigurationError, match="missing field"):
            RoutingTable.from_mapping([{"name": "main", "stage": "default"}], default_category="main")

    def test_unknown_stage(self):
        with pytest.raises(ConfigurationError, match="Unknown rule stage"):
            RoutingTable.from_mapping(
                [{"name": "main", "credential_name": "k", "stage": "urgentest"}],
                default_category="main",
            )
