"""
Store Provider Module

Process-wide in-memory stores and configuration for API dependency injection.
"""

import logging
import os

from statement_import.config import ImportConfig, load_import_config
from statement_import.store import InMemoryMovementStore, InMemoryRuleStore

logger = logging.getLogger(__name__)

# Optional rule file; defaults to categorization_rules.yaml in the config dir
RULES_PATH = os.getenv("STATEMENT_IMPORT_RULES")

_movement_store: InMemoryMovementStore | None = None
_rule_store: InMemoryRuleStore | None = None
_import_config: ImportConfig | None = None


def get_movement_store() -> InMemoryMovementStore:
    """Get the movement store for FastAPI dependency injection."""
    global _movement_store
    if _movement_store is None:
        _movement_store = InMemoryMovementStore()
    return _movement_store


def get_rule_store() -> InMemoryRuleStore:
    """Get the rule store, seeded from the rule file on first use."""
    global _rule_store
    if _rule_store is None:
        _rule_store = InMemoryRuleStore.from_yaml(RULES_PATH)
        logger.info(f"Rule store initialized with {len(_rule_store.all_rules())} rules")
    return _rule_store


def get_import_config() -> ImportConfig:
    """Get the import configuration, loaded once per process."""
    global _import_config
    if _import_config is None:
        _import_config = load_import_config()
    return _import_config


def reset_stores() -> None:
    """Drop all stored state; the next request starts from the config files."""
    global _movement_store, _rule_store, _import_config
    _movement_store = None
    _rule_store = None
    _import_config = None
