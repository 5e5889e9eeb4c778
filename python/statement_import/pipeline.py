"""
Statement Import Pipeline

Parse, validate, deduplicate and categorize a statement, then commit the
non-duplicate movements to a record store.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from .categorizer import CategorizationEngine, CategorizationResult
from .config import ImportConfig
from .duplicate_detector import DuplicateDetector, DuplicateVerdict
from .exceptions import StatementParseError
from .parsers import IngTextParser
from .pdf_text import extract_pdf_text
from .store import HistoryLookup, MovementSink, RuleSource
from .validator import CleanMovement, MovementValidator

logger = logging.getLogger(__name__)


@dataclass
class ImportItem:
    """One validated movement with its duplicate verdict and category."""

    movement: CleanMovement
    categorization: CategorizationResult | None = None
    verdict: DuplicateVerdict | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.verdict is not None and self.verdict.is_duplicate

    def to_dict(self) -> dict:
        return {
            "movement": self.movement.to_dict(),
            "categorization": self.categorization.to_dict() if self.categorization else None,
            "duplicate": self.verdict.to_dict() if self.verdict else None,
        }


@dataclass
class ImportPreview:
    """Everything a user needs to decide whether to import a statement."""

    account_id: str
    items: list[ImportItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def to_import(self) -> list[ImportItem]:
        return [item for item in self.items if not item.is_duplicate]

    @property
    def duplicates(self) -> list[ImportItem]:
        return [item for item in self.items if item.is_duplicate]

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "items": [item.to_dict() for item in self.items],
            "errors": self.errors,
            "warnings": self.warnings,
            "metadata": self.metadata,
            "stats": {
                "total": len(self.items),
                "to_import": len(self.to_import),
                "duplicates": len(self.duplicates),
                "errors": len(self.errors),
                "warnings": len(self.warnings),
            },
        }


@dataclass
class ImportSummary:
    """Result of committing a preview."""

    account_id: str
    imported: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "imported": self.imported,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class StatementImporter:
    """Runs the import stages for one account at a time."""

    def __init__(
        self,
        history: HistoryLookup,
        rules: RuleSource,
        config: ImportConfig | None = None,
        source_category_map: dict[str, tuple[str, str | None]] | None = None,
        today: date | None = None
    ):
        """Initialize the importer.

        Args:
            history: Previously stored movements, per account
            rules: Ordered active rules, per account
            config: Import configuration
            source_category_map: Statement category hints for the categorizer
            today: Ingestion date used by the validator
        """
        self.history = history
        self.rules = rules
        self.config = config or ImportConfig()
        self.source_category_map = source_category_map or {}
        self.today = today

    def preview(self, text: str, account_id: str) -> ImportPreview:
        """Build an import preview from statement text.

        Raises:
            EmptyStatementError: If the text is empty
            StatementParseError: If no movement could be parsed
        """
        parsed = IngTextParser(self.config).parse(text)
        if not parsed.movements:
            raise StatementParseError(parsed.errors)

        validator = MovementValidator(self.config, account_id=account_id, today=self.today)
        validated = validator.validate_and_clean(parsed.movements)

        detector = DuplicateDetector(
            self.history.movements_for_account(account_id),
            nearby_days=self.config.nearby_days,
        )
        verdicts = detector.detect_batch(validated.movements)

        engine = CategorizationEngine(
            self.rules.rules_for_account(account_id),
            self.source_category_map,
        )

        preview = ImportPreview(
            account_id=account_id,
            errors=parsed.errors + validated.errors,
            warnings=list(validated.warnings),
            metadata=dict(parsed.metadata),
        )
        for index, movement in enumerate(validated.movements):
            if index in verdicts:
                preview.items.append(ImportItem(movement=movement, verdict=verdicts[index]))
                continue
            categorized = engine.categorize_movement(movement)
            preview.items.append(ImportItem(
                movement=categorized.movement,
                categorization=categorized.categorization,
            ))

        logger.info(
            f"Preview for account {account_id}: {len(preview.to_import)} to import, "
            f"{len(preview.duplicates)} duplicates, {len(preview.errors)} errors"
        )
        return preview

    def preview_pdf(self, pdf_bytes: bytes, account_id: str, source_name: str = "statement.pdf") -> ImportPreview:
        """Build an import preview from a PDF statement."""
        text = extract_pdf_text(pdf_bytes, source_name=source_name)
        preview = self.preview(text, account_id)
        preview.metadata["source_name"] = source_name
        return preview

    def commit(self, preview: ImportPreview, sink: MovementSink) -> ImportSummary:
        """Store every non-duplicate movement of a preview.

        Args:
            preview: Result of preview()
            sink: Record store receiving the movements

        Returns:
            ImportSummary; movements the sink refuses count as skipped
        """
        summary = ImportSummary(
            account_id=preview.account_id,
            duplicates=len(preview.duplicates),
            errors=list(preview.errors),
            warnings=list(preview.warnings),
        )

        for item in preview.to_import:
            if sink.save(item.movement, item.categorization):
                summary.imported += 1
            else:
                summary.skipped += 1

        logger.info(
            f"Committed import for account {preview.account_id}: "
            f"{summary.imported} imported, {summary.skipped} skipped, "
            f"{summary.duplicates} duplicates"
        )
        return summary
