"""Keyword matching against the merchant table and user rules.

Pure functions: no database access, no name->id resolution. The merchant
table always wins over user rules; user rules are tried in the order given
(the loader returns them newest-first).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from .merchants import MerchantRule
from .models import Rule


@dataclass(frozen=True, slots=True)
class RuleMatch:
    """Names of the category a keyword points at, plus where the keyword came from."""

    provenance: Literal["merchant", "rule"]
    keyword: str
    major_category: str
    category: str
    rule_id: int | None = None


def match_merchant(description: str, merchant_rules: Iterable[MerchantRule]) -> RuleMatch | None:
    text = description.lower()
    for m in merchant_rules:
        if m.keyword.lower() in text:
            return RuleMatch("merchant", m.keyword, m.major_category, m.category)
    return None


def match_user_rule(description: str, user_rules: Iterable[Rule]) -> RuleMatch | None:
    text = description.lower()
    for rule in user_rules:
        kw = rule.keyword.lower()
        # "" is a substring of every description; an empty keyword matches nothing.
        if kw and kw in text:
            return RuleMatch("rule", rule.keyword, rule.major_category, rule.category, rule.id)
    return None


def match_rules(
    description: str,
    merchant_rules: Iterable[MerchantRule],
    user_rules: Iterable[Rule],
) -> RuleMatch | None:
    """Return the first merchant match, else the first user-rule match, else ``None``."""

    return match_merchant(description, merchant_rules) or match_user_rule(
        description, user_rules
    )


__all__ = ["RuleMatch", "match_merchant", "match_user_rule", "match_rules"]
