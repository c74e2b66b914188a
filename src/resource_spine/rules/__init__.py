"""Fault classification: outcomes, matchers, rule sets and rule tables.

Architecture::

    status.py     Ignore | FailWith(code) — the closed outcome type
    matchers.py   ByKind | ByCode | ByPredicate
    rule_set.py   ErrorRule, ErrorRuleSet (+ fallback chain), classify()
    codes.py      ServiceErrorCode — codes every AWS service can return
    loader.py     YAML rule tables → ErrorRuleSet registry
    defaults.py   DEFAULT_ERROR_RULE_SET (packaged table)
"""

from resource_spine.rules.codes import ServiceErrorCode
from resource_spine.rules.matchers import ByCode, ByKind, ByPredicate, by_code, by_kind, by_predicate
from resource_spine.rules.rule_set import (
    DEFAULT_STATUS,
    ErrorRule,
    ErrorRuleSet,
    ErrorRuleSetBuilder,
    classify,
    derived,
)
from resource_spine.rules.status import ErrorStatus, FailWith, Ignore, fail_with, ignore

__all__ = [
    "ServiceErrorCode",
    "ByCode",
    "ByKind",
    "ByPredicate",
    "by_code",
    "by_kind",
    "by_predicate",
    "DEFAULT_STATUS",
    "ErrorRule",
    "ErrorRuleSet",
    "ErrorRuleSetBuilder",
    "classify",
    "derived",
    "ErrorStatus",
    "FailWith",
    "Ignore",
    "fail_with",
    "ignore",
]
