"""Posting rules for turning source documents into ledger lines."""

from ledger_kernel.posting_rules.base import BasePostingRule, PostingRule
from ledger_kernel.posting_rules.registry import (
    PostingRuleRegistry,
    get_default_registry,
    register_rule,
)

__all__ = [
    "BasePostingRule",
    "PostingRule",
    "PostingRuleRegistry",
    "get_default_registry",
    "register_rule",
]
