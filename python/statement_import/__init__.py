"""
Statement Import Module

Parses ING statement text, validates and fingerprints movements, detects
duplicates against history and categorizes them with prioritized rules.
"""

from .categorizer import (
    UNCATEGORIZED,
    CategorizationEngine,
    CategorizationResult,
    CategorizedMovement,
)
from .config import ImportConfig, load_import_config
from .duplicate_detector import DuplicateDetector, DuplicateSplit, DuplicateVerdict
from .exceptions import (
    ConfigurationError,
    EmptyStatementError,
    InvalidRuleError,
    PdfExtractionError,
    StatementImportError,
    StatementParseError,
)
from .fingerprint import movement_fingerprint
from .parsers import IngTextParser, ParseResult, RawMovement, parse_ing_text
from .pipeline import ImportPreview, ImportSummary, StatementImporter
from .rules import CategorizationRule, MatchMode, load_rules
from .store import InMemoryMovementStore, InMemoryRuleStore
from .validator import CleanMovement, MovementValidator, ValidationResult

__all__ = [
    # Parsing
    "IngTextParser",
    "ParseResult",
    "RawMovement",
    "parse_ing_text",
    # Validation
    "CleanMovement",
    "MovementValidator",
    "ValidationResult",
    # Fingerprints and duplicates
    "movement_fingerprint",
    "DuplicateDetector",
    "DuplicateSplit",
    "DuplicateVerdict",
    # Categorization
    "UNCATEGORIZED",
    "CategorizationEngine",
    "CategorizationResult",
    "CategorizedMovement",
    "CategorizationRule",
    "MatchMode",
    "load_rules",
    # Pipeline and stores
    "ImportPreview",
    "ImportSummary",
    "StatementImporter",
    "InMemoryMovementStore",
    "InMemoryRuleStore",
    # Configuration and errors
    "ImportConfig",
    "load_import_config",
    "ConfigurationError",
    "EmptyStatementError",
    "InvalidRuleError",
    "PdfExtractionError",
    "StatementImportError",
    "StatementParseError",
]
