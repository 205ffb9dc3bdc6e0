"""
Routing System

1. Category classifier (category_classifier.py) — ordered substring rules
   from an immutable RoutingTable map a chat message to one category.
2. Category router (category_router.py) — maps the category to a credential
   name, reads the live model id and decrypted key from the CredentialStore,
   and falls back to the default category's credential once.
3. Key probe (key_probe.py) — admin check that a stored key is accepted by
   the provider.
"""

from devil_router.routing.category_classifier import CategoryClassifier, CategoryMatch
from devil_router.routing.category_router import CategoryRouter, CategoryStatus, RoutingResult
from devil_router.routing.key_probe import KeyProber, KeyProbeResult, ProbeStatus
from devil_router.routing.routing_table import (
    CategoryRule,
    RoutingTable,
    RuleStage,
    default_routing_table,
)

__all__ = [
    "CategoryClassifier",
    "CategoryMatch",
    "CategoryRouter",
    "CategoryRule",
    "CategoryStatus",
    "default_routing_table",
    "KeyProber",
    "KeyProbeResult",
    "ProbeStatus",
    "RoutingResult",
    "RoutingTable",
    "RuleStage",
]
