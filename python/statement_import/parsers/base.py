"""
Base Statement Parser Module

Abstract base class for bank statement text parsers.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from ..config import ImportConfig
from ..exceptions import EmptyStatementError

logger = logging.getLogger(__name__)


@dataclass
class RawMovement:
    """A movement candidate as read from the statement, before validation."""

    date: date | None
    description: str
    amount: Decimal
    balance: Decimal | None = None
    date_text: str = ""
    line_number: int = 0
    source_lines: list[str] = field(default_factory=list)
    source_category: str | None = None
    source_subcategory: str | None = None


@dataclass
class ParseResult:
    """Result of parsing a statement."""

    format: str
    movements: list[RawMovement] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def movement_count(self) -> int:
        return len(self.movements)

    @property
    def success(self) -> bool:
        """True when at least one movement was recognized."""
        return bool(self.movements)


class BaseStatementParser(ABC):
    """Abstract base class for statement text parsers."""

    FORMAT: str = "UNKNOWN"

    # Day-first formats, tried in order
    DATE_FORMATS = [
        "%d/%m/%Y",
        "%d-%m-%Y",
        "%d.%m.%Y",
        "%d/%m/%y",
        "%d-%m-%y",
        "%d.%m.%y",
    ]

    CURRENCY_MARKERS = re.compile(r"EUR|€|\$", re.IGNORECASE)

    def __init__(self, config: ImportConfig | None = None):
        """Initialize the parser.

        Args:
            config: Import configuration; only tolerate_format_errors is read here
        """
        self.config = config or ImportConfig()

    @property
    def tolerant(self) -> bool:
        return self.config.tolerate_format_errors

    def parse(self, text: str) -> ParseResult:
        """Parse statement text into ordered movement candidates.

        Args:
            text: Statement text, pasted or extracted from a PDF

        Returns:
            ParseResult with movements in statement order, per-line errors
            and metadata

        Raises:
            EmptyStatementError: If the text is empty
        """
        if text is None or not text.strip():
            raise EmptyStatementError()

        result = ParseResult(format=self.FORMAT)
        content = self._preprocess_content(text)
        lines = content.split("\n")

        self._parse_lines(lines, result)

        result.metadata.update(self._extract_metadata(content))
        result.metadata.update({
            "format": self.FORMAT,
            "source_length": len(text),
            "line_count": len(lines),
            "entry_count": len(result.movements),
        })

        if not result.movements:
            result.errors.append("No movements recognized in statement text")

        logger.info(
            f"Parsed {len(result.movements)} movements from {len(lines)} lines "
            f"({len(result.errors)} errors)"
        )
        return result

    def _preprocess_content(self, content: str) -> str:
        """Normalize BOM, line endings and non-breaking spaces."""
        if content.startswith("\ufeff"):
            content = content[1:]
        content = content.replace("\r\n", "\n").replace("\r", "\n")
        return content.replace("\u00a0", " ")

    @abstractmethod
    def _parse_lines(self, lines: list[str], result: ParseResult) -> None:
        """Parse statement lines, appending movements and errors to result."""

    def _extract_metadata(self, content: str) -> dict:
        """Extract statement-level metadata. Override per format."""
        return {}

    def _parse_date(self, date_str: str) -> date:
        """Parse a day-first date token.

        Args:
            date_str: Date token such as 05/01/2024

        Returns:
            Parsed date

        Raises:
            ValueError: If the token is not a real calendar date
        """
        date_str = date_str.strip()
        formats = self.DATE_FORMATS if self.tolerant else self.DATE_FORMATS[:1]

        for fmt in formats:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue

        raise ValueError(f"Cannot parse date: {date_str}")

    def _parse_amount(self, amount_str: str) -> Decimal:
        """Parse a signed amount token to Decimal.

        The last '.' or ',' followed by exactly two digits is the decimal
        separator; any other separator is a thousands separator.

        Raises:
            ValueError: If the token is not a number
        """
        cleaned = self.CURRENCY_MARKERS.sub("", amount_str)
        cleaned = cleaned.replace('"', "").replace(" ", "").replace("\u2212", "-")

        negative = False
        if cleaned.startswith("-"):
            negative = True
            cleaned = cleaned[1:]
        elif cleaned.startswith("+"):
            cleaned = cleaned[1:]

        match = re.search(r"[.,](\d{2})$", cleaned)
        if match:
            integer_part = re.sub(r"[.,]", "", cleaned[:match.start()])
            cleaned = f"{integer_part}.{match.group(1)}"
        else:
            cleaned = re.sub(r"[.,]", "", cleaned)

        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"Cannot parse amount: {amount_str}")

        return -amount if negative else amount
