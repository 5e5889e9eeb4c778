"""
ING Text Statement Parser

Parses ING Spain statement text, pasted from the web banking view or
extracted from the monthly PDF.

Typical entry:
    05/01/2024  COMPRA MERCADONA VALENCIA  -12,50 EUR  1.234,56 EUR  SUPERMERCADOS

Descriptions may wrap onto following lines; a line with no leading date
continues the entry above it, before or after the line holding the amount.
"""

import logging
import re

from .base import BaseStatementParser, ParseResult, RawMovement

logger = logging.getLogger(__name__)


class IngTextParser(BaseStatementParser):
    """Parser for ING Spain statement text."""

    FORMAT = "ING_TEXT"

    # Any day-first date at the start of a line starts a new entry
    ENTRY_START = re.compile(r'^"?(\d{1,2}[/.-]\d{1,2}[/.-](?:\d{4}|\d{2}))(?![\d/.-])"?')
    CANONICAL_DATE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

    # Spanish format only: -1.234,56
    STRICT_AMOUNT = re.compile(
        r"(?<![\d.])(?<!\d,)-?(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}(?!\d)"
    )
    # Also: sign spacing, € on either side, dot decimals, no thousands separator
    TOLERANT_AMOUNT = re.compile(
        r"(?<![\d.])(?<!\d,)(?:[-\u2212+]\s?)?(?:€\s?)?"
        r"(?:\d{1,3}(?:[.,]\d{3})+|\d+)[.,]\d{2}(?!\d)(?:\s?€)?"
    )

    CATEGORY_TAIL = re.compile(r"^[^\W\d_][^\d]*$")
    EUR_MARKER = re.compile(r"(?<![A-Za-z])EUR(?![A-Za-z])", re.IGNORECASE)

    # Header, footer and column lines that never belong to a movement
    NOISE_PATTERNS = [
        re.compile(r"^saldo\b", re.IGNORECASE),
        re.compile(r"^fecha\b", re.IGNORECASE),
        re.compile(r"^(p[aá]gina|page)\s*\d+", re.IGNORECASE),
        re.compile(r"^ing(\s+direct\b|\.es\b)", re.IGNORECASE),
        re.compile(r"^(movimientos|extracto|iban)\b", re.IGNORECASE),
        re.compile(r"^cuenta\s+(n[oó]mina|naranja|sin\s+n[oó]mina)\b", re.IGNORECASE),
        re.compile(r"\b(del|desde)\s+\d{2}/\d{2}/\d{4}\s+(al|hasta)\b", re.IGNORECASE),
    ]

    PERIOD_PATTERN = re.compile(
        r"(?:del|desde)\s+(\d{2}/\d{2}/\d{4})\s+(?:al|hasta)\s+(\d{2}/\d{2}/\d{4})",
        re.IGNORECASE,
    )
    ACCOUNT_PATTERN = re.compile(
        r"Cuenta\s+(?:N[ÓO]MINA|NARANJA|SIN\s+N[ÓO]MINA)[^\n]*", re.IGNORECASE
    )

    def _parse_lines(self, lines: list[str], result: ParseResult) -> None:
        entry: list[tuple[int, str]] = []

        for line_number, line in enumerate(lines, start=1):
            stripped = line.strip()
            if not stripped:
                continue

            start = self.ENTRY_START.match(stripped)
            if start and not self._is_noise(self._strip_separators(stripped[start.end():])):
                self._flush_entry(entry, result)
                entry = [(line_number, stripped)]
            elif start or self._is_noise(stripped):
                self._flush_entry(entry, result)
                entry = []
            elif entry:
                entry.append((line_number, stripped))
            else:
                logger.debug(f"Skipping header line {line_number}: {stripped}")

        self._flush_entry(entry, result)

    def _flush_entry(self, entry: list[tuple[int, str]], result: ParseResult) -> None:
        if not entry:
            return

        line_number = entry[0][0]
        try:
            movement = self._parse_entry(entry)
        except ValueError as e:
            text = " ".join(line for _, line in entry)
            result.errors.append(f"Line {line_number}: {e} in '{text}'")
            logger.warning(f"Skipping unparseable entry at line {line_number}: {e}")
            return

        result.movements.append(movement)

    def _parse_entry(self, entry: list[tuple[int, str]]) -> RawMovement:
        """Parse one reassembled entry.

        The amount is the last money token before the tail; when two money
        tokens sit next to each other the second one is the running balance.
        Only a label on the amount line itself is read as the category hint;
        anything on later lines is part of the description.

        Raises:
            ValueError: If the entry cannot be interpreted as a movement
        """
        source_lines = [line for _, line in entry]

        start = self.ENTRY_START.match(source_lines[0])
        date_text = start.group(1)

        if not self.tolerant and not self.CANONICAL_DATE.match(date_text):
            raise ValueError(f"unexpected date format '{date_text}'")

        pattern = self.TOLERANT_AMOUNT if self.tolerant else self.STRICT_AMOUNT
        amount_line = self._find_amount_line(source_lines, start.end(), pattern)
        if amount_line is None:
            raise ValueError("no amount found")

        # Lines after the amount line wrap the description
        rest = " ".join(source_lines[:amount_line + 1])[start.end():]
        continuation = " ".join(source_lines[amount_line + 1:])
        amounts = list(pattern.finditer(rest))

        last = amounts[-1]
        tail = self._strip_separators(rest[last.end():])
        if tail and not self.CATEGORY_TAIL.match(tail):
            raise ValueError(f"unexpected text after amount '{tail}'")

        amount_match, balance_match = last, None
        if len(amounts) > 1:
            previous = amounts[-2]
            if not self._strip_separators(rest[previous.end():last.start()]):
                amount_match, balance_match = previous, last

        try:
            txn_date = self._parse_date(date_text)
        except ValueError:
            # Left for the validator to reject with movement context
            txn_date = None

        category, subcategory = self._split_category(tail)

        return RawMovement(
            date=txn_date,
            date_text=date_text,
            description=self._clean_description(f"{rest[:amount_match.start()]} {continuation}"),
            amount=self._parse_amount(amount_match.group(0)),
            balance=self._parse_amount(balance_match.group(0)) if balance_match else None,
            line_number=entry[0][0],
            source_lines=source_lines,
            source_category=category,
            source_subcategory=subcategory,
        )

    @staticmethod
    def _find_amount_line(lines: list[str], date_end: int, pattern: re.Pattern) -> int | None:
        for index in range(len(lines) - 1, -1, -1):
            text = lines[index][date_end:] if index == 0 else lines[index]
            if pattern.search(text):
                return index
        return None

    def _strip_separators(self, text: str) -> str:
        text = self.EUR_MARKER.sub(" ", text)
        if self.tolerant:
            text = text.replace("€", " ")
        return text.strip(" \t;,\"")

    def _clean_description(self, text: str) -> str:
        text = self._strip_separators(text).replace('"', "")
        text = re.sub(r"\s+", " ", text)
        return text.strip().strip("*").strip()

    def _is_noise(self, line: str) -> bool:
        return any(p.search(line) for p in self.NOISE_PATTERNS)

    @staticmethod
    def _split_category(tail: str) -> tuple[str | None, str | None]:
        if not tail:
            return None, None
        parts = re.split(r"\s*[/>]\s*", tail, maxsplit=1)
        category = parts[0].strip() or None
        subcategory = parts[1].strip() if len(parts) > 1 and parts[1].strip() else None
        return category, subcategory

    def _extract_metadata(self, content: str) -> dict:
        metadata = {}

        period = self.PERIOD_PATTERN.search(content)
        if period:
            metadata["period_start"] = period.group(1)
            metadata["period_end"] = period.group(2)

        account = self.ACCOUNT_PATTERN.search(content)
        if account:
            metadata["account_name"] = account.group(0).strip()

        return metadata


def parse_ing_text(text: str, config=None) -> ParseResult:
    """Convenience function to parse ING statement text.

    Args:
        text: Statement text
        config: Optional ImportConfig

    Returns:
        ParseResult
    """
    return IngTextParser(config).parse(text)
