"""Pydantic models and loader for YAML rule tables.

Rule tables are configuration data, not code. A document declares named rule
sets; each set lists its rules in priority order and may name a fallback set
(in the same document or in a base registry passed to the loader).

Usage::

    from resource_spine.rules.loader import load_rule_sets

    sets = load_rule_sets(yaml_text, base=packaged_rule_sets())
    sets["db-instance"].handle(fault)

Example YAML::

    apiVersion: resource-spine/v1
    kind: ErrorRuleSets
    ruleSets:
      default:
        rules:
          - codes: [ThrottlingException, Throttling]
            failWith: Throttling
          - kinds: ["botocore.exceptions:BotoCoreError"]
            failWith: ServiceInternalError
      db-instance-soft-fail-tag:
        fallback: default
        rules:
          - kinds: ["resource_spine.core.errors:AccessDeniedError"]
            ignore: true

Each rule carries exactly one matcher (``kinds``, ``codes`` or
``predicate``) and exactly one outcome (``ignore: true`` or ``failWith``).
``kinds`` and ``predicate`` are ``module:qualname`` references.

Tags:
    resource-spine, rules, yaml, declarative, config-driven

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.errors import RuleSetConfigError
from resource_spine.rules.matchers import Matcher, by_code, by_kind, by_predicate
from resource_spine.rules.rule_set import ErrorRule, ErrorRuleSet
from resource_spine.rules.status import ErrorStatus, fail_with, ignore

API_VERSION = "resource-spine/v1"


def resolve_ref(ref: str) -> Any:
    """Import and return the object identified by ``'module:qualname'``.

    Raises:
        ImportError: If the module cannot be found.
        AttributeError: If the qualname path is invalid.
    """
    module_path, _, attr_path = ref.partition(":")
    if not attr_path:
        raise ValueError(f"Invalid ref (missing ':'): {ref!r}")
    obj: Any = importlib.import_module(module_path)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


class ErrorRuleSpec(BaseModel):
    """One rule: a single matcher and a single outcome."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kinds: list[str] | None = Field(default=None, description="Exception class refs (module:qualname)")
    codes: list[str] | None = Field(default=None, description="External service error codes")
    predicate: str | None = Field(default=None, description="Predicate callable ref (module:qualname)")

    ignore: bool = Field(default=False, description="Soft-continue on match")
    fail_with: HandlerErrorCode | None = Field(default=None, alias="failWith")

    @model_validator(mode="after")
    def _exactly_one_matcher_and_outcome(self) -> ErrorRuleSpec:
        matchers = [m for m in (self.kinds, self.codes, self.predicate) if m]
        if len(matchers) != 1:
            raise ValueError("rule must declare exactly one of 'kinds', 'codes', 'predicate'")
        if self.ignore == (self.fail_with is not None):
            raise ValueError("rule must declare exactly one of 'ignore: true' or 'failWith'")
        return self

    def to_status(self) -> ErrorStatus:
        if self.ignore:
            return ignore()
        assert self.fail_with is not None
        return fail_with(self.fail_with)

    def to_matcher(self) -> Matcher:
        if self.codes:
            return by_code(*self.codes)
        if self.kinds:
            return by_kind(*(self._resolve_kind(ref) for ref in self.kinds))
        assert self.predicate is not None
        return by_predicate(self._resolve_predicate(self.predicate), label=self.predicate)

    def to_rule(self) -> ErrorRule:
        return ErrorRule(self.to_matcher(), self.to_status())

    @staticmethod
    def _resolve_kind(ref: str) -> type[BaseException]:
        try:
            kind = resolve_ref(ref)
        except (ImportError, AttributeError, ValueError) as exc:
            raise RuleSetConfigError(f"Cannot resolve exception kind {ref!r}", cause=exc) from exc
        if not (isinstance(kind, type) and issubclass(kind, BaseException)):
            raise RuleSetConfigError(f"{ref!r} is not an exception class")
        return kind

    @staticmethod
    def _resolve_predicate(ref: str) -> Callable[[BaseException], bool]:
        try:
            predicate = resolve_ref(ref)
        except (ImportError, AttributeError, ValueError) as exc:
            raise RuleSetConfigError(f"Cannot resolve predicate {ref!r}", cause=exc) from exc
        if not callable(predicate):
            raise RuleSetConfigError(f"{ref!r} resolved to non-callable: {type(predicate)}")
        return predicate


class ErrorRuleSetSpec(BaseModel):
    """A named rule set inside a document."""

    model_config = ConfigDict(extra="forbid")

    description: str = ""
    fallback: str | None = None
    rules: list[ErrorRuleSpec] = Field(default_factory=list)


class ErrorRuleSetsDocument(BaseModel):
    """Top-level YAML document."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    api_version: Literal["resource-spine/v1"] = Field(default=API_VERSION, alias="apiVersion")
    kind: Literal["ErrorRuleSets"] = "ErrorRuleSets"
    rule_sets: dict[str, ErrorRuleSetSpec] = Field(default_factory=dict, alias="ruleSets")

    @classmethod
    def from_yaml(cls, content: str) -> ErrorRuleSetsDocument:
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise RuleSetConfigError(f"Rule table is not valid YAML: {exc}", cause=exc) from exc
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise RuleSetConfigError(f"Invalid rule table: {exc}", cause=exc) from exc

    def build(self, base: Mapping[str, ErrorRuleSet] | None = None) -> dict[str, ErrorRuleSet]:
        """Resolve every set (and its fallback chain) into ``ErrorRuleSet`` objects."""
        base = dict(base or {})
        built: dict[str, ErrorRuleSet] = {}

        def resolve(name: str, stack: tuple[str, ...]) -> ErrorRuleSet:
            if name in built:
                return built[name]
            if name in stack:
                cycle = " -> ".join(stack + (name,))
                raise RuleSetConfigError(f"Rule set fallback cycle: {cycle}")
            spec = self.rule_sets.get(name)
            if spec is None:
                if name in base:
                    return base[name]
                raise RuleSetConfigError(f"Unknown fallback rule set {name!r}")
            if spec.fallback == name and name in base:
                # A set may extend the base set it overrides
                fallback: ErrorRuleSet | None = base[name]
            elif spec.fallback:
                fallback = resolve(spec.fallback, stack + (name,))
            else:
                fallback = None
            built[name] = ErrorRuleSet(
                rules=tuple(rule.to_rule() for rule in spec.rules),
                fallback=fallback,
                name=name,
            )
            return built[name]

        for name in self.rule_sets:
            resolve(name, ())

        base.update(built)
        return base


def load_rule_sets(
    content: str,
    base: Mapping[str, ErrorRuleSet] | None = None,
) -> dict[str, ErrorRuleSet]:
    """Parse a YAML document and return ``base`` updated with its sets."""
    return ErrorRuleSetsDocument.from_yaml(content).build(base)


def _read_table(path: str | Path) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleSetConfigError(f"Cannot read rule table {path}: {exc}", cause=exc) from exc


def load_rule_sets_file(
    path: str | Path,
    base: Mapping[str, ErrorRuleSet] | None = None,
) -> dict[str, ErrorRuleSet]:
    return load_rule_sets(_read_table(path), base)


# Packaged tables, most general first. Each layer falls back into the ones before it.
_PACKAGED_LAYERS = ("data/default.yaml", "data/rds.yaml")


def _packaged_text(package: str, resource: str) -> str:
    return resources.files(package).joinpath(resource).read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def _packaged_documents() -> tuple[ErrorRuleSetsDocument, ...]:
    return tuple(
        ErrorRuleSetsDocument.from_yaml(_packaged_text("resource_spine.rules", layer))
        for layer in _PACKAGED_LAYERS
    )


def _layered(overrides: ErrorRuleSetsDocument | None = None) -> dict[str, ErrorRuleSet]:
    """
    Build the packaged layers in order with ``overrides`` applied in place.

    An override of a packaged set is built right after the layer defining
    that set, so every later layer falls back to the overridden version.
    Sets the packaged tables do not define are built last.
    """
    pending = dict(overrides.rule_sets) if overrides is not None else {}
    sets: dict[str, ErrorRuleSet] = {}
    for document in _packaged_documents():
        sets = document.build(sets)
        layer = {name: pending.pop(name) for name in list(pending) if name in document.rule_sets}
        if overrides is not None and layer:
            sets = overrides.model_copy(update={"rule_sets": layer}).build(sets)
    if overrides is not None and pending:
        sets = overrides.model_copy(update={"rule_sets": pending}).build(sets)
    return sets


@lru_cache(maxsize=1)
def _packaged() -> dict[str, ErrorRuleSet]:
    return _layered()


def packaged_rule_sets() -> dict[str, ErrorRuleSet]:
    """Every rule table shipped with the package, keyed by set name."""
    return dict(_packaged())


def rule_sets_for(rules_file: str | Path | None = None) -> dict[str, ErrorRuleSet]:
    """Packaged tables, rebuilt with ``rules_file`` layered in when given."""
    if rules_file is None:
        return packaged_rule_sets()
    return _layered(ErrorRuleSetsDocument.from_yaml(_read_table(rules_file)))


__all__ = [
    "API_VERSION",
    "ErrorRuleSpec",
    "ErrorRuleSetSpec",
    "ErrorRuleSetsDocument",
    "load_rule_sets",
    "load_rule_sets_file",
    "packaged_rule_sets",
    "resolve_ref",
    "rule_sets_for",
]
