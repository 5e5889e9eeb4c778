"""
Statement text parsers.
"""

from .base import BaseStatementParser, ParseResult, RawMovement
from .ing_text import IngTextParser, parse_ing_text

__all__ = [
    "BaseStatementParser",
    "ParseResult",
    "RawMovement",
    "IngTextParser",
    "parse_ing_text",
]
