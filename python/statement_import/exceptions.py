"""
Statement Import Exceptions

Hard failures raised by the import pipeline. Per-movement problems are never
raised; they are collected in the result objects of each stage.
"""


class StatementImportError(Exception):
    """Base class for all statement import failures."""


class EmptyStatementError(StatementImportError, ValueError):
    """Raised when the statement text is empty or whitespace only."""

    def __init__(self, message: str = "Statement text is empty"):
        super().__init__(message)


class StatementParseError(StatementImportError):
    """Raised when a statement yields no recognizable movements at all."""

    def __init__(self, errors: list[str] | None = None):
        self.errors = list(errors or [])
        message = "No movements could be parsed from the statement"
        if self.errors:
            message += f": {'; '.join(self.errors[:3])}"
        super().__init__(message)


class InvalidRuleError(StatementImportError, ValueError):
    """Raised when a categorization rule is rejected at creation time."""

    def __init__(self, rule_id: str | None, detail: str):
        self.rule_id = rule_id
        self.detail = detail
        prefix = f"Invalid rule '{rule_id}'" if rule_id else "Invalid rule"
        super().__init__(f"{prefix}: {detail}")


class ConfigurationError(StatementImportError):
    """Raised when a configuration file exists but cannot be used."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid configuration in '{path}': {detail}")


class PdfExtractionError(StatementImportError):
    """Raised when text cannot be extracted from a PDF statement."""

    def __init__(self, source_name: str, cause: str):
        self.source_name = source_name
        self.cause = cause
        super().__init__(f"Error extracting text from '{source_name}': {cause}")
