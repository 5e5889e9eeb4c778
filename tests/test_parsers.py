"""
Statement Parser Tests

Tests for the ING text parser: entry reassembly, amounts, balances,
category hints, metadata and strict/tolerant modes.
"""

import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_import.config import ImportConfig
from statement_import.exceptions import EmptyStatementError
from statement_import.parsers import IngTextParser, RawMovement, parse_ing_text


class TestIngTextParser:
    """Tests for IngTextParser."""

    @pytest.fixture
    def parser(self):
        """Create a tolerant parser."""
        return IngTextParser()

    @pytest.fixture
    def strict_parser(self):
        """Create a strict parser."""
        return IngTextParser(ImportConfig(tolerate_format_errors=False))

    def test_parse_sample_statement(self, parser, sample_statement):
        """Test all movements are found in statement order."""
        result = parser.parse(sample_statement)

        assert result.success is True
        assert result.format == "ING_TEXT"
        assert result.movement_count == 3
        assert result.errors == []
        assert [m.date for m in result.movements] == [
            date(2024, 1, 5), date(2024, 1, 10), date(2024, 1, 15)
        ]

    def test_amount_and_balance(self, parser, sample_statement):
        """Test the balance column is separated from the amount."""
        first, second, _ = parser.parse(sample_statement).movements

        assert first.amount == Decimal("-45.30")
        assert first.balance == Decimal("1954.70")
        assert second.amount == Decimal("2100.00")
        assert second.balance == Decimal("4054.70")

    def test_wrapped_entry_is_reassembled(self, parser, sample_statement):
        """Test a continuation line merges into one description."""
        movement = parser.parse(sample_statement).movements[2]

        assert movement.description == "BIZUM ENVIADO A JUAN CENA VIERNES"
        assert movement.amount == Decimal("-20.00")
        assert movement.line_number == 7
        assert len(movement.source_lines) == 2

    def test_wrap_after_amount_line(self, parser):
        """Test a continuation below the amount joins the description."""
        text = "05/01/2024  COMPRA TARJETA MERCADONA  -12,50 EUR  1.234,56 EUR\nVALENCIA CENTRO"
        movement = parser.parse(text).movements[0]

        assert movement.description == "COMPRA TARJETA MERCADONA VALENCIA CENTRO"
        assert movement.amount == Decimal("-12.50")
        assert movement.balance == Decimal("1234.56")
        assert movement.source_category is None
        assert len(movement.source_lines) == 2

    def test_wrap_after_amount_line_with_digits(self, parser):
        """Test digits on a continuation line never reject the entry."""
        text = "05/01/2024  COMPRA TARJETA MERCADONA  -12,50 EUR  1.234,56 EUR\nC/ COLON 12 VALENCIA"
        result = parser.parse(text)

        assert result.errors == []
        assert result.movement_count == 1
        assert result.movements[0].description == "COMPRA TARJETA MERCADONA C/ COLON 12 VALENCIA"

    def test_wrap_after_amount_line_keeps_category(self, parser):
        """Test the label on the amount line stays the hint."""
        text = "15/01/2024  BIZUM ENVIADO A JUAN  -20,00 EUR  BIZUM\nCENA VIERNES"
        movement = parser.parse(text).movements[0]

        assert movement.description == "BIZUM ENVIADO A JUAN CENA VIERNES"
        assert movement.source_category == "BIZUM"

    def test_source_category_hint(self, parser, sample_statement):
        """Test the trailing category label is kept as a hint."""
        movements = parser.parse(sample_statement).movements

        assert movements[0].source_category == "SUPERMERCADOS"
        assert movements[1].source_category is None
        assert movements[2].source_category == "BIZUM"

    def test_category_with_subcategory(self, parser):
        """Test category / subcategory tails are split."""
        text = "05/01/2024  PAGO RESTAURANTE  -30,00 EUR  Ocio / Restaurantes"
        movement = parser.parse(text).movements[0]

        assert movement.source_category == "Ocio"
        assert movement.source_subcategory == "Restaurantes"

    def test_metadata(self, parser, sample_statement):
        """Test statement period and account name extraction."""
        metadata = parser.parse(sample_statement).metadata

        assert metadata["period_start"] == "01/01/2024"
        assert metadata["period_end"] == "31/01/2024"
        assert metadata["account_name"].startswith("Cuenta NÓMINA")
        assert metadata["entry_count"] == 3

    def test_header_and_footer_lines_skipped(self, parser):
        """Test dated noise lines do not become movements."""
        text = """Extracto de cuenta
05/01/2024  COMPRA FARMACIA  -8,95 EUR
31/01/2024  Saldo final  1.000,00 EUR
Página 1 de 2
"""
        result = parser.parse(text)

        assert result.movement_count == 1
        assert result.movements[0].description == "COMPRA FARMACIA"

    def test_noise_line_ends_wrapped_entry(self, parser):
        """Test a footer line is not merged into the previous entry."""
        text = """05/01/2024  COMPRA FARMACIA  -8,95 EUR
Página 1 de 2
"""
        movement = parser.parse(text).movements[0]

        assert movement.source_lines == ["05/01/2024  COMPRA FARMACIA  -8,95 EUR"]

    def test_positive_amount_with_plus_sign(self, parser):
        """Test explicit plus signs are accepted."""
        movement = parser.parse("05/01/2024  BIZUM RECIBIDO  +15,00 EUR").movements[0]
        assert movement.amount == Decimal("15.00")

    def test_invalid_calendar_date_left_for_validator(self, parser):
        """Test an impossible date produces a candidate with no date."""
        movement = parser.parse("31/02/2024  COMPRA TIENDA  -10,00 EUR").movements[0]

        assert movement.date is None
        assert movement.date_text == "31/02/2024"

    def test_unexpected_tail_is_line_error(self, parser):
        """Test text with digits after the amount is rejected."""
        text = """05/01/2024  COMPRA TIENDA  -10,00 EUR  REF 12345
06/01/2024  COMPRA FARMACIA  -8,95 EUR
"""
        result = parser.parse(text)

        assert result.movement_count == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Line 1:")
        assert "unexpected text after amount" in result.errors[0]

    def test_entry_without_amount_is_line_error(self, parser):
        """Test entries with no amount are reported, parsing continues."""
        text = """05/01/2024  COMPRA SIN IMPORTE
06/01/2024  COMPRA FARMACIA  -8,95 EUR
"""
        result = parser.parse(text)

        assert result.movement_count == 1
        assert "no amount found" in result.errors[0]

    def test_empty_text_raises(self, parser):
        """Test empty input is a hard failure."""
        with pytest.raises(EmptyStatementError):
            parser.parse("   \n  ")

    def test_unrecognized_text(self, parser):
        """Test text with no entries returns an unsuccessful result."""
        result = parser.parse("hola\nnada que ver aquí")

        assert result.success is False
        assert result.errors == ["No movements recognized in statement text"]

    def test_bom_and_crlf(self, parser):
        """Test BOM and Windows line endings are handled."""
        text = "\ufeff05/01/2024  COMPRA FARMACIA  -8,95 EUR\r\n06/01/2024  COMPRA PAN  -1,20 EUR\r\n"
        assert parser.parse(text).movement_count == 2

    def test_tolerant_formats(self, parser):
        """Test euro signs, dot decimals and short dates in tolerant mode."""
        text = """05-01-24  CAFE BAR  -2.50€
06.01.2024  LIBRERIA  € 12,00
"""
        movements = parser.parse(text).movements

        assert movements[0].date == date(2024, 1, 5)
        assert movements[0].amount == Decimal("-2.50")
        assert movements[1].date == date(2024, 1, 6)
        assert movements[1].amount == Decimal("12.00")

    def test_strict_rejects_tolerant_formats(self, strict_parser):
        """Test strict mode reports non-canonical formats as line errors."""
        text = """05-01-24  CAFE BAR  -2,50 EUR
06/01/2024  CAFE BAR  -2.50€
07/01/2024  COMPRA FARMACIA  -8,95 EUR
"""
        result = strict_parser.parse(text)

        assert result.movement_count == 1
        assert result.movements[0].date == date(2024, 1, 7)
        assert len(result.errors) == 2
        assert "unexpected date format" in result.errors[0]
        assert "no amount found" in result.errors[1]

    def test_thousands_separator(self, parser):
        """Test Spanish thousands separators."""
        movement = parser.parse("05/01/2024  TRANSFERENCIA  -1.234.567,89 EUR").movements[0]
        assert movement.amount == Decimal("-1234567.89")


class TestParseIngText:
    """Tests for the convenience function."""

    def test_returns_raw_movements(self, sample_statement):
        result = parse_ing_text(sample_statement)

        assert all(isinstance(m, RawMovement) for m in result.movements)
        assert result.movement_count == 3

    def test_passes_config(self):
        result = parse_ing_text(
            "05/01/2024  CAFE BAR  -2.50€",
            ImportConfig(tolerate_format_errors=False),
        )
        assert result.success is False
