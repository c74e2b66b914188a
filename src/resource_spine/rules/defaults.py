"""The shared default classification table.

Loaded from ``rules/data/default.yaml``; every resource-specific rule set
chains to it as its last fallback.
"""

from resource_spine.rules.loader import packaged_rule_sets
from resource_spine.rules.rule_set import ErrorRuleSet

DEFAULT_RULE_SET_NAME = "default"

DEFAULT_ERROR_RULE_SET: ErrorRuleSet = packaged_rule_sets()[DEFAULT_RULE_SET_NAME]

__all__ = ["DEFAULT_ERROR_RULE_SET", "DEFAULT_RULE_SET_NAME"]
