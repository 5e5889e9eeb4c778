"""
Categorization Rules API Routes

Provides endpoints for testing rules against descriptions.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from statement_import.categorizer import CategorizationEngine
from statement_import.exceptions import InvalidRuleError
from statement_import.rules import MatchMode, rule_from_dict
from statement_import.store import InMemoryRuleStore

from ..stores import get_rule_store

router = APIRouter(prefix="/rules", tags=["rules"])


class Rule(BaseModel):
    """Categorization rule."""

    id: str
    name: str
    pattern: str
    match_mode: str
    category: str
    subcategory: str | None
    priority: int
    active: bool
    account_id: str | None


class RuleCheckRequest(BaseModel):
    """A description and the rule fields to test against it."""

    description: str
    pattern: str
    match_mode: str = MatchMode.CONTAINS.value
    category: str = "test"
    subcategory: str | None = None
    priority: int = 1


class RuleCheckResponse(BaseModel):
    """Whether the rule matches the description."""

    matches: bool
    description: str
    pattern: str
    match_mode: str


class MatchingRulesResponse(BaseModel):
    """Rules matching a description, winner first."""

    description: str
    account_id: str | None
    rules: list[Rule]
    winner: Rule | None


@router.post("/check", response_model=RuleCheckResponse)
async def check_rule(request: RuleCheckRequest) -> RuleCheckResponse:
    """Test a rule definition against a description.

    Args:
        request: Description and rule fields

    Returns:
        Match outcome

    Raises:
        HTTPException: 400 if the rule itself is invalid
    """
    try:
        rule = rule_from_dict({"id": "check", **request.model_dump(exclude={"description"})})
    except InvalidRuleError as e:
        raise HTTPException(status_code=400, detail=e.detail)

    return RuleCheckResponse(
        matches=CategorizationEngine.check_rule(request.description, rule),
        description=request.description,
        pattern=rule.pattern,
        match_mode=rule.match_mode.value,
    )


@router.get("/matching", response_model=MatchingRulesResponse)
async def matching_rules(
    description: str = Query(..., min_length=1),
    account_id: str | None = Query(None),
    rules: InMemoryRuleStore = Depends(get_rule_store),
) -> MatchingRulesResponse:
    """List every active rule matching a description, in evaluation order."""
    matched = CategorizationEngine(rules.all_rules()).matching_rules(description, account_id)
    items = [Rule(**rule.to_dict()) for rule in matched]

    return MatchingRulesResponse(
        description=description,
        account_id=account_id,
        rules=items,
        winner=items[0] if items else None,
    )
