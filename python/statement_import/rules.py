"""
Categorization Rules Module

User-configurable lexical and regex rules mapping movement descriptions
to a category and subcategory.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from .config import RULES_FILE, load_yaml_file, resolve_config_dir
from .exceptions import ConfigurationError, InvalidRuleError

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """How a rule pattern is compared against a description."""

    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EXACT = "exact"
    REGEX = "regex"


@dataclass(frozen=True)
class CategorizationRule:
    """A single categorization rule.

    Lower priority numbers are evaluated first. A rule with no account_id
    applies to every account.
    """

    id: str
    name: str
    pattern: str
    match_mode: MatchMode
    category: str
    subcategory: str | None = None
    priority: int = 1
    active: bool = True
    account_id: str | None = None
    _regex: re.Pattern | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            mode = MatchMode(self.match_mode)
        except ValueError:
            raise InvalidRuleError(self.id, f"unknown match mode '{self.match_mode}'")
        object.__setattr__(self, "match_mode", mode)

        if not self.pattern or not self.pattern.strip():
            raise InvalidRuleError(self.id, "pattern cannot be empty")
        if not self.category or not self.category.strip():
            raise InvalidRuleError(self.id, "category cannot be empty")
        if isinstance(self.priority, bool) or not isinstance(self.priority, int) or self.priority < 1:
            raise InvalidRuleError(self.id, f"priority must be a positive integer, got {self.priority!r}")

        if mode is MatchMode.REGEX:
            try:
                compiled = re.compile(self.pattern, re.IGNORECASE)
            except re.error as e:
                raise InvalidRuleError(self.id, f"invalid regex '{self.pattern}': {e}") from e
            object.__setattr__(self, "_regex", compiled)

    def matches(self, description: str) -> bool:
        return MATCHERS[self.match_mode](self, description)

    def applies_to(self, account_id: str | None) -> bool:
        """True for active rules that are global or scoped to the account."""
        return self.active and (self.account_id is None or self.account_id == account_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "pattern": self.pattern,
            "match_mode": self.match_mode.value,
            "category": self.category,
            "subcategory": self.subcategory,
            "priority": self.priority,
            "active": self.active,
            "account_id": self.account_id,
        }


def _contains(rule: CategorizationRule, description: str) -> bool:
    return rule.pattern.casefold() in description.casefold()


def _starts_with(rule: CategorizationRule, description: str) -> bool:
    return description.casefold().startswith(rule.pattern.casefold())


def _ends_with(rule: CategorizationRule, description: str) -> bool:
    return description.casefold().endswith(rule.pattern.casefold())


def _exact(rule: CategorizationRule, description: str) -> bool:
    return description.strip().casefold() == rule.pattern.strip().casefold()


def _regex(rule: CategorizationRule, description: str) -> bool:
    return rule._regex.search(description) is not None


MATCHERS: dict[MatchMode, Callable[[CategorizationRule, str], bool]] = {
    MatchMode.CONTAINS: _contains,
    MatchMode.STARTS_WITH: _starts_with,
    MatchMode.ENDS_WITH: _ends_with,
    MatchMode.EXACT: _exact,
    MatchMode.REGEX: _regex,
}


def rule_from_dict(data: dict[str, Any], default_id: str | None = None) -> CategorizationRule:
    """Build a rule from a mapping such as a YAML entry or API payload.

    Raises:
        InvalidRuleError: If a required field is missing or invalid
    """
    rule_id = str(data.get("id") or default_id or "")
    return CategorizationRule(
        id=rule_id,
        name=str(data.get("name") or rule_id),
        pattern=str(data.get("pattern") or ""),
        match_mode=data.get("match_mode") or MatchMode.CONTAINS,
        category=str(data.get("category") or ""),
        subcategory=data.get("subcategory"),
        priority=data.get("priority", 1),
        active=bool(data.get("active", True)),
        account_id=data.get("account_id"),
    )


@dataclass
class RuleSet:
    """Rules in file order plus the statement category hint map."""

    rules: list[CategorizationRule] = field(default_factory=list)
    source_category_map: dict[str, tuple[str, str | None]] = field(default_factory=dict)


def load_rules(path: Path | str | None = None) -> RuleSet:
    """Load categorization rules from YAML.

    Args:
        path: Rule file; defaults to categorization_rules.yaml in the
            resolved config directory

    Returns:
        RuleSet in file order; empty when the file does not exist

    Raises:
        InvalidRuleError: If any rule is invalid
    """
    path = Path(path) if path else resolve_config_dir() / RULES_FILE
    data = load_yaml_file(path)
    if data is None:
        return RuleSet()

    rules = []
    seen_ids = set()
    for position, entry in enumerate(data.get("rules") or [], start=1):
        if not isinstance(entry, dict):
            raise InvalidRuleError(f"#{position}", "rule entry must be a mapping")
        rule = rule_from_dict(entry, default_id=f"rule-{position}")
        if rule.id in seen_ids:
            raise InvalidRuleError(rule.id, "duplicate rule id")
        seen_ids.add(rule.id)
        rules.append(rule)

    source_map = {}
    for label, target in (data.get("source_category_map") or {}).items():
        if isinstance(target, dict):
            if not target.get("category"):
                raise ConfigurationError(str(path), f"source category '{label}' has no category")
            source_map[label.strip().upper()] = (target["category"], target.get("subcategory"))
        else:
            source_map[label.strip().upper()] = (str(target), None)

    logger.info(
        f"Loaded {len(rules)} categorization rules and "
        f"{len(source_map)} source category mappings from {path}"
    )
    return RuleSet(rules=rules, source_category_map=source_map)
