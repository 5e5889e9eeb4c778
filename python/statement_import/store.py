"""
Record Store Module

Interfaces the import pipeline consumes, plus in-memory implementations
used by the CLI, the API and the tests.
"""

import logging
from pathlib import Path
from typing import Protocol

from .categorizer import CategorizationResult
from .exceptions import InvalidRuleError
from .rules import CategorizationRule, load_rules, rule_from_dict
from .validator import CleanMovement

logger = logging.getLogger(__name__)


class HistoryLookup(Protocol):
    def movements_for_account(self, account_id: str) -> list[CleanMovement]:
        ...


class RuleSource(Protocol):
    def rules_for_account(self, account_id: str) -> list[CategorizationRule]:
        ...


class MovementSink(Protocol):
    def save(self, movement: CleanMovement, categorization: CategorizationResult) -> bool:
        ...


class InMemoryMovementStore:
    """Movement records indexed by fingerprint.

    A second record with an already stored fingerprint is refused.
    """

    def __init__(self, movements: list[CleanMovement] | None = None):
        self._movements: list[CleanMovement] = []
        self._categorizations: dict[str, CategorizationResult | None] = {}
        self._by_fingerprint: dict[str, CleanMovement] = {}
        for movement in movements or []:
            self.save(movement)

    def movements_for_account(self, account_id: str) -> list[CleanMovement]:
        return [m for m in self._movements if m.account_id == account_id]

    def save(
        self,
        movement: CleanMovement,
        categorization: CategorizationResult | None = None
    ) -> bool:
        """Store a movement.

        Returns:
            False if a movement with the same fingerprint already exists
        """
        fingerprint = movement.fingerprint
        if fingerprint in self._by_fingerprint:
            logger.debug(f"Refusing movement with existing fingerprint {fingerprint}")
            return False

        self._movements.append(movement)
        self._by_fingerprint[fingerprint] = movement
        self._categorizations[fingerprint] = categorization
        return True

    def find_by_fingerprint(self, fingerprint: str) -> CleanMovement | None:
        return self._by_fingerprint.get(fingerprint)

    def categorization_for(self, fingerprint: str) -> CategorizationResult | None:
        return self._categorizations.get(fingerprint)

    def count(self, account_id: str | None = None) -> int:
        if account_id is None:
            return len(self._movements)
        return len(self.movements_for_account(account_id))


class InMemoryRuleStore:
    """Categorization rules in creation order."""

    def __init__(
        self,
        rules: list[CategorizationRule] | None = None,
        source_category_map: dict[str, tuple[str, str | None]] | None = None
    ):
        self._rules: list[CategorizationRule] = []
        self.source_category_map = dict(source_category_map or {})
        for rule in rules or []:
            self._add(rule)

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "InMemoryRuleStore":
        """Create a store seeded from a rule file (see load_rules)."""
        rule_set = load_rules(path)
        return cls(rule_set.rules, rule_set.source_category_map)

    def rules_for_account(self, account_id: str) -> list[CategorizationRule]:
        """Active rules that are global or scoped to the account, in order."""
        return [rule for rule in self._rules if rule.applies_to(account_id)]

    def all_rules(self) -> list[CategorizationRule]:
        return list(self._rules)

    def create_rule(self, data: dict) -> CategorizationRule:
        """Validate and append a new rule.

        Args:
            data: Rule fields; id defaults to the next free rule-N

        Raises:
            InvalidRuleError: If the rule is invalid or its id is taken
        """
        rule = rule_from_dict(data, default_id=f"rule-{len(self._rules) + 1}")
        self._add(rule)
        logger.info(f"Created rule {rule.id} ({rule.match_mode.value} '{rule.pattern}')")
        return rule

    def _add(self, rule: CategorizationRule) -> None:
        if any(existing.id == rule.id for existing in self._rules):
            raise InvalidRuleError(rule.id, "duplicate rule id")
        self._rules.append(rule)
