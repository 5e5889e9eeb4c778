"""
Statement Import API Routes

Provides endpoints for previewing and committing pasted statement text.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from statement_import.config import ImportConfig
from statement_import.exceptions import EmptyStatementError, StatementParseError
from statement_import.pipeline import StatementImporter
from statement_import.store import InMemoryMovementStore, InMemoryRuleStore

from ..stores import get_import_config, get_movement_store, get_rule_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])


class ImportRequest(BaseModel):
    """Statement text to import into an account."""

    text: str
    account_id: str = Field(min_length=1)
    ignore_duplicates: bool | None = None
    validate_balances: bool | None = None


class Movement(BaseModel):
    """Validated movement."""

    date: str
    description: str
    amount: float
    balance: float | None
    account_id: str | None
    manual: bool
    category: str | None
    subcategory: str | None
    source_category: str | None
    source_subcategory: str | None
    fingerprint: str


class Categorization(BaseModel):
    """Category assigned to a movement."""

    category: str
    subcategory: str | None
    confidence: int
    applied_rule_id: str | None
    method: str


class DuplicateInfo(BaseModel):
    """Duplicate verdict for a flagged movement."""

    is_duplicate: bool
    confidence: int
    reason: str
    matched_reference: Movement | None
    matched_index: int | None


class PreviewItem(BaseModel):
    """One movement of the preview."""

    movement: Movement
    categorization: Categorization | None
    duplicate: DuplicateInfo | None


class PreviewStats(BaseModel):
    """Preview counters."""

    total: int
    to_import: int
    duplicates: int
    errors: int
    warnings: int


class PreviewResponse(BaseModel):
    """Import preview."""

    account_id: str
    items: list[PreviewItem]
    errors: list[str]
    warnings: list[str]
    metadata: dict
    stats: PreviewStats


class ImportSummaryResponse(BaseModel):
    """Result of committing an import."""

    account_id: str
    imported: int
    skipped: int
    duplicates: int
    errors: list[str]
    warnings: list[str]


def _build_importer(
    request: ImportRequest,
    movements: InMemoryMovementStore,
    rules: InMemoryRuleStore,
    config: ImportConfig
) -> StatementImporter:
    overrides = {
        key: value
        for key, value in (
            ("ignore_duplicates", request.ignore_duplicates),
            ("validate_balances", request.validate_balances),
        )
        if value is not None
    }
    return StatementImporter(
        history=movements,
        rules=rules,
        config=config.replace(**overrides) if overrides else config,
        source_category_map=rules.source_category_map,
    )


def _run_preview(importer: StatementImporter, request: ImportRequest):
    try:
        return importer.preview(request.text, request.account_id)
    except EmptyStatementError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": []})
    except StatementParseError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})


@router.post("/preview", response_model=PreviewResponse)
async def preview_import(
    request: ImportRequest,
    movements: InMemoryMovementStore = Depends(get_movement_store),
    rules: InMemoryRuleStore = Depends(get_rule_store),
    config: ImportConfig = Depends(get_import_config),
) -> PreviewResponse:
    """Parse, validate, deduplicate and categorize without storing.

    Args:
        request: Statement text and target account
        movements: Movement store
        rules: Rule store
        config: Import configuration

    Returns:
        Preview with every movement, its duplicate verdict and category
    """
    importer = _build_importer(request, movements, rules, config)
    preview = _run_preview(importer, request)
    return PreviewResponse(**preview.to_dict())


@router.post("", response_model=ImportSummaryResponse)
async def import_statement(
    request: ImportRequest,
    movements: InMemoryMovementStore = Depends(get_movement_store),
    rules: InMemoryRuleStore = Depends(get_rule_store),
    config: ImportConfig = Depends(get_import_config),
) -> ImportSummaryResponse:
    """Preview and commit a statement in one step."""
    importer = _build_importer(request, movements, rules, config)
    preview = _run_preview(importer, request)
    summary = importer.commit(preview, movements)

    logger.info(f"Imported {summary.imported} movements into account {request.account_id}")
    return ImportSummaryResponse(**summary.to_dict())
