"""
Categorization Engine Module

Assigns a category and subcategory to each movement using the prioritized
rule snapshot of its account.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .rules import CategorizationRule
from .validator import CleanMovement

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Sin categorizar"

RULE_CONFIDENCE = 100
SOURCE_HINT_CONFIDENCE = 60


@dataclass(frozen=True)
class CategorizationResult:
    """Category assigned to one movement."""

    category: str
    subcategory: str | None
    confidence: int
    applied_rule_id: str | None
    method: str  # 'rule', 'source_hint', 'fallback'

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "subcategory": self.subcategory,
            "confidence": self.confidence,
            "applied_rule_id": self.applied_rule_id,
            "method": self.method,
        }


FALLBACK = CategorizationResult(
    category=UNCATEGORIZED,
    subcategory=None,
    confidence=0,
    applied_rule_id=None,
    method="fallback",
)


@dataclass
class CategorizedMovement:
    """A movement with its categorization applied."""

    movement: CleanMovement
    categorization: CategorizationResult


class CategorizationEngine:
    """Evaluates an ordered rule snapshot against movement descriptions."""

    def __init__(
        self,
        rules: list[CategorizationRule],
        source_category_map: dict[str, tuple[str, str | None]] | None = None
    ):
        """Initialize the engine.

        Args:
            rules: Rule snapshot; list order breaks priority ties
            source_category_map: Statement category label to
                (category, subcategory), used only when no rule matches
        """
        self.rules = list(rules)
        self.source_category_map = {
            label.upper(): target for label, target in (source_category_map or {}).items()
        }

    def matching_rules(
        self,
        description: str,
        account_id: str | None = None
    ) -> list[CategorizationRule]:
        """All candidate rules matching the description, winner first.

        Sorting is stable, so equal priorities keep snapshot order.
        """
        matched = [
            rule for rule in self.rules
            if rule.applies_to(account_id) and rule.matches(description)
        ]
        return sorted(matched, key=lambda rule: rule.priority)

    def categorize(
        self,
        description: str,
        amount: Decimal | None = None,
        txn_date: date | None = None,
        account_id: str | None = None,
        source_category: str | None = None,
        source_subcategory: str | None = None
    ) -> CategorizationResult:
        """Categorize a single description.

        Args:
            description: Movement description
            amount: Movement amount, unused by lexical rules
            txn_date: Movement date, unused by lexical rules
            account_id: Account scope for rule selection
            source_category: Category label printed on the statement
            source_subcategory: Subcategory label printed on the statement,
                used when the mapped hint has no subcategory of its own

        Returns:
            CategorizationResult
        """
        matched = self.matching_rules(description, account_id)
        if matched:
            rule = matched[0]
            logger.debug(f"'{description}' matched rule {rule.id} -> {rule.category}")
            return CategorizationResult(
                category=rule.category,
                subcategory=rule.subcategory,
                confidence=RULE_CONFIDENCE,
                applied_rule_id=rule.id,
                method="rule",
            )

        if source_category:
            target = self.source_category_map.get(source_category.strip().upper())
            if target:
                category, subcategory = target
                return CategorizationResult(
                    category=category,
                    subcategory=subcategory or source_subcategory,
                    confidence=SOURCE_HINT_CONFIDENCE,
                    applied_rule_id=None,
                    method="source_hint",
                )

        return FALLBACK

    def categorize_movement(self, movement: CleanMovement) -> CategorizedMovement:
        result = self.categorize(
            movement.description,
            amount=movement.amount,
            txn_date=movement.date,
            account_id=movement.account_id,
            source_category=movement.source_category,
            source_subcategory=movement.source_subcategory,
        )
        categorized = movement.with_category(result.category, result.subcategory)
        return CategorizedMovement(movement=categorized, categorization=result)

    def categorize_batch(self, movements: list[CleanMovement]) -> list[CategorizedMovement]:
        """Categorize movements, keeping input order."""
        categorized = [self.categorize_movement(m) for m in movements]

        by_method: dict[str, int] = {}
        for item in categorized:
            by_method[item.categorization.method] = by_method.get(item.categorization.method, 0) + 1
        logger.info(f"Categorized {len(categorized)} movements: {by_method}")

        return categorized

    @staticmethod
    def check_rule(description: str, rule: CategorizationRule) -> bool:
        """Test one rule against a description, ignoring account scope."""
        return rule.matches(description)
