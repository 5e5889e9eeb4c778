"""
Pytest configuration and fixtures for statement import tests.
"""

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

from statement_import.rules import CategorizationRule
from statement_import.validator import CleanMovement

ACCOUNT_ID = "acc-1"


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def account_id() -> str:
    return ACCOUNT_ID


@pytest.fixture
def today() -> date:
    """Fixed ingestion date for validator and pipeline tests."""
    return date(2024, 2, 1)


@pytest.fixture
def make_movement():
    """Factory for CleanMovement instances."""
    def _make(
        txn_date: date = date(2024, 1, 5),
        description: str = "COMPRA MERCADONA VALENCIA",
        amount: str = "-45.30",
        account_id: str = ACCOUNT_ID,
        balance: str | None = None,
        **kwargs
    ) -> CleanMovement:
        return CleanMovement(
            date=txn_date,
            description=description,
            amount=Decimal(amount),
            account_id=account_id,
            balance=Decimal(balance) if balance is not None else None,
            **kwargs
        )
    return _make


@pytest.fixture
def make_rule():
    """Factory for CategorizationRule instances."""
    def _make(
        rule_id: str = "rule-1",
        pattern: str = "MERCADONA",
        match_mode: str = "contains",
        category: str = "Alimentación",
        subcategory: str | None = "Supermercado",
        priority: int = 1,
        **kwargs
    ) -> CategorizationRule:
        return CategorizationRule(
            id=rule_id,
            name=kwargs.pop("name", rule_id),
            pattern=pattern,
            match_mode=match_mode,
            category=category,
            subcategory=subcategory,
            priority=priority,
            **kwargs
        )
    return _make


@pytest.fixture
def sample_statement() -> str:
    """ING statement text with headers, a wrapped entry and balances."""
    return """ING DIRECT
Cuenta NÓMINA ES12 3456 7890
Movimientos del 01/01/2024 al 31/01/2024
Fecha  Descripción  Importe  Saldo
05/01/2024  COMPRA MERCADONA VALENCIA  -45,30 EUR  1.954,70 EUR  SUPERMERCADOS
10/01/2024  TRANSFERENCIA RECIBIDA NOMINA EMPRESA SL  2.100,00 EUR  4.054,70 EUR
15/01/2024  BIZUM ENVIADO A JUAN
CENA VIERNES  -20,00 EUR  4.034,70 EUR  BIZUM
Saldo final 4.034,70 EUR
"""
