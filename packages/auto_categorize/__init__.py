"""Public interface for the ``auto_categorize`` package.

This module re-exports the package's API functions and public models/types as
the stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .api import auto_categorize, auto_categorize_account
from .batching import CategorizationBatcher
from .categories import CategoryResolver
from .errors import AutoCategorizeError, CommitError, LoadError, ResolutionError
from .history import HistoryMatch, find_best_match
from .merchants import MERCHANT_RULES, MerchantRule
from .models import (
    AutoCategorizeSummary,
    BulkUpdateOp,
    CategorizedTransaction,
    CategoryAssignment,
    CategoryIds,
    PendingTransaction,
    Provenance,
    Rule,
)
from .rules import RuleMatch, match_rules
from .similarity import filter_by_amount, similarity_score

__all__ = [
    # API
    "auto_categorize",
    "auto_categorize_account",
    # Matching building blocks
    "similarity_score",
    "filter_by_amount",
    "find_best_match",
    "match_rules",
    "CategorizationBatcher",
    "CategoryResolver",
    "MERCHANT_RULES",
    # Models / types
    "PendingTransaction",
    "CategorizedTransaction",
    "Rule",
    "MerchantRule",
    "RuleMatch",
    "HistoryMatch",
    "CategoryIds",
    "CategoryAssignment",
    "BulkUpdateOp",
    "AutoCategorizeSummary",
    "Provenance",
    # Errors
    "AutoCategorizeError",
    "LoadError",
    "CommitError",
    "ResolutionError",
]
