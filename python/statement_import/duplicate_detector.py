"""
Duplicate Detector Module

Flags incoming movements that already exist in the account history or
that repeat earlier movements of the same import batch.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from .validator import CleanMovement

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")

REASON_EXACT = "exact match on date, amount, description"
REASON_SAME_DAY = "same date and amount, similar description"
REASON_NEARBY = "similar movement in nearby date"
REASON_BATCH = "duplicate within same import batch"
REASON_NONE = "no duplicate found"


@dataclass(frozen=True)
class DuplicateVerdict:
    """Outcome of duplicate detection for one candidate."""

    is_duplicate: bool
    confidence: int
    reason: str
    matched_reference: CleanMovement | None = None
    matched_index: int | None = None

    def to_dict(self) -> dict:
        return {
            "is_duplicate": self.is_duplicate,
            "confidence": self.confidence,
            "reason": self.reason,
            "matched_reference": (
                self.matched_reference.to_dict() if self.matched_reference else None
            ),
            "matched_index": self.matched_index,
        }


NOT_DUPLICATE = DuplicateVerdict(is_duplicate=False, confidence=0, reason=REASON_NONE)


@dataclass
class DuplicateSplit:
    """A batch split into movements to import and duplicates to report."""

    clean: list[CleanMovement] = field(default_factory=list)
    duplicates: list[tuple[CleanMovement, DuplicateVerdict]] = field(default_factory=list)


def normalize_words(text: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace."""
    text = re.sub(r"[^\w\s]", "", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def description_similarity(first: str, second: str) -> float:
    """Word-level Jaccard index of two descriptions.

    Returns:
        1.0 for equal normalized text, 0.0 when either side has no words
    """
    a, b = normalize_words(first), normalize_words(second)
    if a == b:
        return 1.0 if a else 0.0
    if not a or not b:
        return 0.0

    words_a, words_b = set(a.split(" ")), set(b.split(" "))
    return len(words_a & words_b) / len(words_a | words_b)


def is_identical(first: CleanMovement, second: CleanMovement) -> bool:
    return (
        first.date == second.date
        and first.amount == second.amount
        and first.description == second.description
    )


class DuplicateDetector:
    """Duplicate detection against a fixed historical snapshot.

    The history index is built once at construction; detect() holds no
    per-call state, so repeated runs give identical verdicts.
    """

    def __init__(self, historical: list[CleanMovement], nearby_days: int = 3):
        """Initialize the detector.

        Args:
            historical: Previously stored movements of the account
            nearby_days: Window for the nearby-date check, in days
        """
        self.historical = list(historical)
        self.nearby_days = nearby_days

        self._by_fingerprint: dict[str, list[CleanMovement]] = {}
        self._by_date_amount: dict[tuple, list[CleanMovement]] = {}
        for movement in self.historical:
            self._by_fingerprint.setdefault(movement.fingerprint, []).append(movement)
            self._by_date_amount.setdefault((movement.date, movement.amount), []).append(movement)

    def detect(self, movement: CleanMovement) -> DuplicateVerdict:
        """Classify one movement against the history.

        Checks run in order and the first match wins: exact match,
        same date and amount with a similar description, then a similar
        movement within the nearby-date window.
        """
        bucket = self._by_date_amount.get((movement.date, movement.amount), [])

        exact = self._find_exact(movement, bucket)
        if exact is not None:
            return DuplicateVerdict(True, 100, REASON_EXACT, matched_reference=exact)

        best, best_score = None, 0.0
        for candidate in bucket:
            score = description_similarity(movement.description, candidate.description)
            if score > best_score:
                best, best_score = candidate, score

        if best_score > 0.8:
            return DuplicateVerdict(True, 95, REASON_SAME_DAY, matched_reference=best)
        if best_score > 0.5:
            return DuplicateVerdict(True, 70, REASON_SAME_DAY, matched_reference=best)

        nearby = self._find_nearby(movement)
        if nearby is not None:
            return DuplicateVerdict(True, 60, REASON_NEARBY, matched_reference=nearby)

        return NOT_DUPLICATE

    def detect_batch(self, movements: list[CleanMovement]) -> dict[int, DuplicateVerdict]:
        """Detect duplicates for a whole batch.

        Args:
            movements: Candidates in statement order

        Returns:
            Verdicts keyed by batch index, only for flagged movements
        """
        verdicts: dict[int, DuplicateVerdict] = {}
        for index, movement in enumerate(movements):
            verdict = self.detect(movement)
            if verdict.is_duplicate:
                logger.debug(f"Movement {index} flagged: {verdict.reason} ({verdict.confidence})")
                verdicts[index] = verdict

        remaining = [i for i in range(len(movements)) if i not in verdicts]
        for position, earlier in enumerate(remaining):
            if earlier in verdicts:
                continue
            for later in remaining[position + 1:]:
                if later in verdicts:
                    continue
                if is_identical(movements[earlier], movements[later]):
                    verdicts[later] = DuplicateVerdict(
                        True, 100, REASON_BATCH,
                        matched_reference=movements[earlier],
                        matched_index=earlier,
                    )

        logger.info(
            f"Checked {len(movements)} movements against {len(self.historical)} historical: "
            f"{len(verdicts)} duplicates"
        )
        return verdicts

    @staticmethod
    def filter_duplicates(
        movements: list[CleanMovement],
        historical: list[CleanMovement],
        nearby_days: int = 3
    ) -> DuplicateSplit:
        """Split a batch into clean movements and duplicates, keeping order."""
        verdicts = DuplicateDetector(historical, nearby_days).detect_batch(movements)

        split = DuplicateSplit()
        for index, movement in enumerate(movements):
            if index in verdicts:
                split.duplicates.append((movement, verdicts[index]))
            else:
                split.clean.append(movement)
        return split

    def _find_exact(
        self,
        movement: CleanMovement,
        bucket: list[CleanMovement]
    ) -> CleanMovement | None:
        # Fingerprints normalize the description, so a hit is confirmed on the raw text
        for candidate in self._by_fingerprint.get(movement.fingerprint, []):
            if is_identical(movement, candidate):
                return candidate
        for candidate in bucket:
            if candidate.description == movement.description:
                return candidate
        return None

    def _find_nearby(self, movement: CleanMovement) -> CleanMovement | None:
        window = timedelta(days=self.nearby_days)
        best, best_score = None, 0.7
        for candidate in self.historical:
            if abs(candidate.date - movement.date) > window:
                continue
            if abs(candidate.amount - movement.amount) > AMOUNT_TOLERANCE:
                continue
            score = description_similarity(movement.description, candidate.description)
            if score > best_score:
                best, best_score = candidate, score
        return best
