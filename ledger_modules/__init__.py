"""
Ledger Modules.

Thin layers over the kernel and engines.  Each module contains:
- Posting profiles (document -> ledger lines, in account roles)
- A service composing engines with the posting engine

Modules:
- AR: Sales invoices, credit notes, customer payments
- AP: Purchase bills, vendor payments
- Cash: Bank transfers
- WIP: Assembly builds
"""

from ledger_kernel.logging_config import get_logger
from ledger_kernel.posting_rules.registry import PostingRuleRegistry, get_default_registry

__all__ = ["build_registry", "register_all_modules"]


def register_all_modules(registry: PostingRuleRegistry | None = None) -> PostingRuleRegistry:
    """
    Register every module's posting rules.

    Call this explicitly at startup or in test fixtures; nothing registers
    at import time.  Without an argument the process-wide default registry
    is used.
    """
    from ledger_modules.ap.profiles import register as register_ap
    from ledger_modules.ar.profiles import register as register_ar
    from ledger_modules.cash.profiles import register as register_cash
    from ledger_modules.wip.profiles import register as register_wip

    registry = registry if registry is not None else get_default_registry()
    register_ar(registry)
    register_ap(registry)
    register_cash(registry)
    register_wip(registry)

    get_logger("modules").info("all_modules_registered", extra={
        "document_kinds": [kind.value for kind in registry.list_document_kinds()],
    })
    return registry


def build_registry() -> PostingRuleRegistry:
    """A fresh registry holding every module's rules."""
    return register_all_modules(PostingRuleRegistry())
