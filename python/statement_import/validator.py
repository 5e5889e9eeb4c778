"""
Movement Validator Module

Business validation and cleanup of parsed movement candidates.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .config import ImportConfig
from .fingerprint import movement_fingerprint
from .parsers.base import RawMovement

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CleanMovement:
    """A validated, normalized movement ready for duplicate detection.

    Construction enforces a non-zero amount and a non-blank description.
    The date is not compared with the ingestion date here: that check
    belongs to MovementValidator, where allow_future_dates can relax it.
    """

    date: date
    description: str
    amount: Decimal
    account_id: str | None = None
    balance: Decimal | None = None
    manual: bool = False
    category: str | None = None
    subcategory: str | None = None
    source_category: str | None = None
    source_subcategory: str | None = None

    def __post_init__(self) -> None:
        if self.amount == 0:
            raise ValueError("amount cannot be zero")
        if not self.description or not self.description.strip():
            raise ValueError("description cannot be empty")

    @property
    def fingerprint(self) -> str:
        return movement_fingerprint(self.date, self.amount, self.description, self.account_id or "")

    def with_category(self, category: str | None, subcategory: str | None) -> "CleanMovement":
        return replace(self, category=category, subcategory=subcategory)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "balance": float(self.balance) if self.balance is not None else None,
            "account_id": self.account_id,
            "manual": self.manual,
            "category": self.category,
            "subcategory": self.subcategory,
            "source_category": self.source_category,
            "source_subcategory": self.source_subcategory,
            "fingerprint": self.fingerprint,
        }


@dataclass
class RejectedMovement:
    """A candidate dropped by validation, with the reasons."""

    movement: RawMovement
    errors: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Result of validating a batch of candidates."""

    movements: list[CleanMovement] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rejected: list[RejectedMovement] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class MovementValidator:
    """Validates RawMovements and cleans them into CleanMovements."""

    def __init__(
        self,
        config: ImportConfig | None = None,
        account_id: str | None = None,
        today: date | None = None
    ):
        """Initialize the validator.

        Args:
            config: Import configuration
            account_id: Account the batch belongs to
            today: Ingestion date; movements after it are rejected
        """
        self.config = config or ImportConfig()
        self.account_id = account_id
        self.today = today or date.today()

    def validate_and_clean(self, raw_movements: list[RawMovement]) -> ValidationResult:
        """Validate and normalize a batch of candidates, in input order.

        Args:
            raw_movements: Parser output

        Returns:
            ValidationResult with cleaned movements, blocking errors and
            non-blocking warnings
        """
        result = ValidationResult()
        positions: list[int] = []
        first_seen: dict[tuple, int] = {}
        repeated = 0

        for position, raw in enumerate(raw_movements, start=1):
            problems = self._check_movement(raw)
            if problems:
                result.errors.extend(f"Movement {position}: {p}" for p in problems)
                result.rejected.append(RejectedMovement(movement=raw, errors=problems))
                continue

            movement, notes = self._clean_movement(raw)
            result.warnings.extend(f"Movement {position}: {n}" for n in notes)

            key = (movement.date, movement.amount, movement.description.casefold())
            if key in first_seen:
                if self.config.ignore_duplicates:
                    result.warnings.append(
                        f"Movement {position}: duplicate of movement {first_seen[key]} "
                        f"in this batch, discarded"
                    )
                    continue
                repeated += 1
            else:
                first_seen[key] = position

            result.movements.append(movement)
            positions.append(position)

        if repeated:
            result.warnings.append(f"Found {repeated} repeated movements in this batch")

        if self.config.validate_balances:
            result.warnings.extend(self._check_balance_sequence(result.movements, positions))

        logger.info(
            f"Validated {len(raw_movements)} candidates: {len(result.movements)} clean, "
            f"{len(result.rejected)} rejected, {len(result.warnings)} warnings"
        )
        return result

    def _check_movement(self, raw: RawMovement) -> list[str]:
        problems = []

        if raw.date is None:
            problems.append(f"invalid date '{raw.date_text}'" if raw.date_text else "missing date")
        else:
            if raw.date > self.today and not self.config.allow_future_dates:
                problems.append(f"date {raw.date.isoformat()} is in the future")
            if self.config.min_date and raw.date < self.config.min_date:
                problems.append(
                    f"date {raw.date.isoformat()} is before {self.config.min_date.isoformat()}"
                )

        if not isinstance(raw.amount, Decimal) or not raw.amount.is_finite():
            problems.append(f"invalid amount '{raw.amount}'")
        elif raw.amount == 0:
            problems.append("amount is zero")
        elif abs(raw.amount) > self.config.max_abs_amount:
            problems.append(f"amount {raw.amount} exceeds limit of {self.config.max_abs_amount}")

        description = (raw.description or "").strip()
        if not description:
            problems.append("description is empty")
        elif len(description) > self.config.max_description_length:
            problems.append(
                f"description longer than {self.config.max_description_length} characters"
            )

        return problems

    def _clean_movement(self, raw: RawMovement) -> tuple[CleanMovement, list[str]]:
        notes = []

        amount = raw.amount.quantize(CENT, rounding=ROUND_HALF_UP)
        if amount != raw.amount:
            notes.append(f"amount {raw.amount} rounded to {amount}")

        balance = None
        if raw.balance is not None:
            balance = raw.balance.quantize(CENT, rounding=ROUND_HALF_UP)

        movement = CleanMovement(
            date=raw.date,
            description=re.sub(r"\s+", " ", raw.description).strip(),
            amount=amount,
            account_id=self.account_id,
            balance=balance,
            source_category=(raw.source_category or "").strip() or None,
            source_subcategory=(raw.source_subcategory or "").strip() or None,
        )
        return movement, notes

    def _check_balance_sequence(
        self,
        movements: list[CleanMovement],
        positions: list[int]
    ) -> list[str]:
        """Check running-balance continuity per account.

        Consecutive movements are compared in chronological order, so
        reverse-chronological statements are walked backwards.
        """
        warnings = []
        by_account: dict[str | None, list[tuple[int, CleanMovement]]] = {}
        for position, movement in zip(positions, movements):
            by_account.setdefault(movement.account_id, []).append((position, movement))

        for sequence in by_account.values():
            if len(sequence) > 1 and sequence[0][1].date > sequence[-1][1].date:
                sequence = list(reversed(sequence))

            for (_, previous), (position, current) in zip(sequence, sequence[1:]):
                if previous.balance is None or current.balance is None:
                    continue
                expected = previous.balance + current.amount
                if abs(expected - current.balance) > self.config.balance_tolerance:
                    warnings.append(
                        f"Movement {position}: balance mismatch, expected {expected} "
                        f"but statement shows {current.balance}"
                    )

        return warnings
