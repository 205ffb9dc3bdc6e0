"""
Routing Table - immutable category configuration
=================================================

Holds the closed set of categories, their trigger lists, the
category -> credential-name mapping and the length thresholds used by the
fast path. A table is built once at startup and shared read-only by every
classifier and router instance.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any

from devil_router.core.exceptions import ConfigurationError, InvalidCategoryError


class RuleStage(IntEnum):
    """Priority stage of a category; lower stages are scanned first"""

    URGENT = 1       # error / bug reports
    STRUCTURED = 2   # notes, slides, documents
    LAYOUT = 3       # UI / UX mockups
    GENERATIVE = 4   # image, logo, icon generation
    FAST = 5         # length-gated quick answers
    GENERAL = 6      # coding and domain categories, declared order
    DEFAULT = 7      # fallback, never scanned


@dataclass(frozen=True)
class CategoryRule:
    """One category with its credential name and ordered triggers"""

    name: str
    credential_name: str
    stage: RuleStage
    triggers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Normalise to lowercase so matching is a plain containment check
        object.__setattr__(self, 'stage', RuleStage(self.stage))
        object.__setattr__(
            self, 'triggers', tuple(t.lower() for t in self.triggers if t and t.strip())
        )

    def first_match(self, lowered: str) -> str | None:
        """Return the first trigger contained in an already-lowercased message."""
        for trigger in self.triggers:
            if trigger in lowered:
                return trigger
        return None


@dataclass(frozen=True)
class RoutingTable:
    """Validated, immutable routing configuration"""

    rules: tuple[CategoryRule, ...]
    default_category: str = "main_brain"
    fast_category: str = "fast"
    short_message_length: int = 30
    quick_message_length: int = 100
    _by_name: Mapping[str, CategoryRule] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'rules', tuple(self.rules))
        by_name: dict[str, CategoryRule] = {}
        for rule in self.rules:
            if rule.name in by_name:
                raise ConfigurationError(
                    f"Duplicate category '{rule.name}' in routing table",
                    details={'category': rule.name},
                )
            by_name[rule.name] = rule
        object.__setattr__(self, '_by_name', MappingProxyType(by_name))

        for role, name in (("default", self.default_category), ("fast", self.fast_category)):
            if name not in by_name:
                raise ConfigurationError(
                    f"The {role} category '{name}' is not defined in the routing table",
                    details={'category': name},
                )
        if self.short_message_length < 0:
            raise ConfigurationError("short_message_length must not be negative")
        if self.quick_message_length < self.short_message_length:
            raise ConfigurationError(
                "quick_message_length must be at least short_message_length",
                details={
                    'short_message_length': self.short_message_length,
                    'quick_message_length': self.quick_message_length,
                },
            )

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.rules)

    def __contains__(self, category: object) -> bool:
        return category in self._by_name

    def rule_for(self, category: str) -> CategoryRule:
        """Return the rule for *category* or raise InvalidCategoryError."""
        try:
            return self._by_name[category]
        except (KeyError, TypeError):
            raise InvalidCategoryError(str(category)) from None

    def credential_for(self, category: str) -> str:
        return self.rule_for(category).credential_name

    @property
    def default_rule(self) -> CategoryRule:
        return self._by_name[self.default_category]

    @property
    def fast_rule(self) -> CategoryRule:
        return self._by_name[self.fast_category]

    def scan_order(self) -> tuple[CategoryRule, ...]:
        """Rules for stages that are scanned by trigger, in priority order.

        Stable sort keeps declared order within a stage.
        """
        scanned = [
            r for r in self.rules
            if r.stage not in (RuleStage.FAST, RuleStage.DEFAULT)
        ]
        return tuple(sorted(scanned, key=lambda r: r.stage))

    @classmethod
    def from_mapping(
        cls,
        categories: Iterable[Mapping[str, Any]],
        **options: Any,
    ) -> "RoutingTable":
        """
        Build a table from plain mappings (YAML / settings input).

        Each mapping needs ``name``, ``credential_name`` and ``stage`` (stage
        name such as ``"urgent"`` or its integer value); ``triggers`` is
        optional.
        """
        rules = []
        for entry in categories:
            try:
                rules.append(CategoryRule(
                    name=entry['name'],
                    credential_name=entry['credential_name'],
                    stage=_parse_stage(entry['stage']),
                    triggers=tuple(entry.get('triggers') or ()),
                ))
            except KeyError as e:
                raise ConfigurationError(
                    f"Category entry is missing field {e}", details={'entry': dict(entry)}
                ) from None
        return cls(rules=tuple(rules), **options)


def _parse_stage(value: Any) -> RuleStage:
    if isinstance(value, RuleStage):
        return value
    try:
        if isinstance(value, str) and not value.isdigit():
            return RuleStage[value.strip().upper()]
        return RuleStage(int(value))
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown rule stage: {value!r}") from None


# =============================================================================
# DEFAULT DEPLOYMENT TABLE
# =============================================================================

DEBUGGING_TRIGGERS = (
    'error', 'exception', 'bug', 'traceback', 'stack trace', 'not working',
    "doesn't work", "won't work", 'crash', 'broken', 'fails', 'failing',
    'undefined is not', 'segfault', 'troubleshoot', 'fix this', "what's wrong",
)

CANVAS_NOTES_TRIGGERS = (
    'presentation', 'powerpoint', 'slide deck', 'slides', 'pitch deck', 'ppt',
    'notes', 'outline', 'canvas', 'whiteboard', 'study guide', 'cheat sheet',
)

UIUX_MOCKUP_TRIGGERS = (
    'mockup', 'mock-up', 'wireframe', 'prototype', 'landing page', 'ui design',
    'ux design', 'ui/ux', 'user interface', 'user experience', 'layout',
    'figma', 'color scheme', 'web design',
)

IMAGE_GENERATION_TRIGGERS = (
    'generate image', 'generate an image', 'create image', 'create an image',
    'make image', 'make an image', 'picture of', 'image of', 'photo of',
    'draw', 'illustration', 'artwork', 'logo', 'icon', 'wallpaper',
)

FAST_TRIGGERS = (
    'quick', 'brief', 'short answer', 'tldr', 'tl;dr', 'what is', 'what are',
    'who is', 'define', 'meaning of', 'in one line',
)

CODING_TRIGGERS = (
    'code', 'function', 'class', 'variable', 'algorithm', 'python',
    'javascript', 'typescript', 'java', 'c++', 'react', 'node', 'api',
    'backend', 'frontend', 'sql', 'database', 'script', 'compile',
    'refactor', 'regex', 'implement',
)

GAME_DEV_TRIGGERS = (
    'game', 'unity', 'unreal', 'godot', 'sprite', 'level design', 'npc',
    'phaser', 'gamemaker', 'multiplayer', 'hitbox',
)


def default_rules() -> tuple[CategoryRule, ...]:
    """Category rules of the stock deployment, in declared order."""
    return (
        CategoryRule('debugging', 'debugging_api_key', RuleStage.URGENT, DEBUGGING_TRIGGERS),
        CategoryRule('canvas_notes', 'canvas_notes_api_key', RuleStage.STRUCTURED, CANVAS_NOTES_TRIGGERS),
        CategoryRule('uiux_mockup', 'uiux_mockup_api_key', RuleStage.LAYOUT, UIUX_MOCKUP_TRIGGERS),
        CategoryRule('image_generation', 'image_generation_api_key', RuleStage.GENERATIVE,
                     IMAGE_GENERATION_TRIGGERS),
        CategoryRule('fast', 'fast_api_key', RuleStage.FAST, FAST_TRIGGERS),
        CategoryRule('coding', 'coding_key', RuleStage.GENERAL, CODING_TRIGGERS),
        CategoryRule('game_dev', 'game_dev_key', RuleStage.GENERAL, GAME_DEV_TRIGGERS),
        CategoryRule('main_brain', 'main_brain_key', RuleStage.DEFAULT),
    )


def default_routing_table(**options: Any) -> RoutingTable:
    """Return the stock routing table, optionally overriding thresholds."""
    return RoutingTable(rules=default_rules(), **options)
