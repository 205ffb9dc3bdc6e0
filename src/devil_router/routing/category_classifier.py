"""
Category Classifier - ordered substring matching for model selection
No LLM calls, no I/O: a pure function of the message and the routing table
"""

from dataclasses import dataclass

from .routing_table import RoutingTable, RuleStage, default_routing_table


@dataclass(frozen=True)
class CategoryMatch:
    """Outcome of classifying one message"""

    category: str
    stage: RuleStage
    trigger: str | None = None  # None for length-only and default decisions

    @property
    def describe(self) -> str:
        if self.trigger is not None:
            return f"{self.category} (trigger: {self.trigger!r})"
        if self.stage is RuleStage.FAST:
            return f"{self.category} (short message)"
        return f"{self.category} (default)"


class CategoryClassifier:
    """
    Maps free text to exactly one category of a RoutingTable.

    Stages are evaluated in fixed priority order and the first category with
    any contained trigger wins outright. Between the generative stage and the
    general stage sits the fast path, gated on message length.
    """

    def __init__(self, table: RoutingTable | None = None) -> None:
        self.table = table or default_routing_table()
        self._scan_order = self.table.scan_order()

    def classify(self, message: str) -> str:
        """Return the category label for *message*. Never raises."""
        return self.detect(message).category

    def detect(self, message: str) -> CategoryMatch:
        """Classify *message* and report which stage and trigger decided it."""
        text = message if isinstance(message, str) else ("" if message is None else str(message))
        lowered = text.lower()
        fast_checked = False

        for rule in self._scan_order:
            if not fast_checked and rule.stage > RuleStage.FAST:
                fast_checked = True
                fast = self._fast_path(text, lowered)
                if fast is not None:
                    return fast

            trigger = rule.first_match(lowered)
            if trigger is not None:
                return CategoryMatch(rule.name, rule.stage, trigger)

        if not fast_checked:
            fast = self._fast_path(text, lowered)
            if fast is not None:
                return fast

        return CategoryMatch(self.table.default_category, RuleStage.DEFAULT)

    def _fast_path(self, text: str, lowered: str) -> CategoryMatch | None:
        length = len(text)
        if length < self.table.short_message_length:
            return CategoryMatch(self.table.fast_category, RuleStage.FAST)
        if length < self.table.quick_message_length:
            trigger = self.table.fast_rule.first_match(lowered)
            if trigger is not None:
                return CategoryMatch(self.table.fast_category, RuleStage.FAST, trigger)
        return None
