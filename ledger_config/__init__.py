"""
Ledger configuration: chart of accounts and posting-role bindings.

Usage:
    from ledger_config import get_default_config, seed_accounts

    config = get_default_config()
    seed_accounts(store, config)
    engine = PostingEngine(store, config.chart(), build_registry())
"""

from ledger_config.loader import (
    compute_checksum,
    get_default_config,
    load_config,
    parse_config,
    seed_accounts,
)
from ledger_config.schema import AccountDef, LedgerConfig

__all__ = [
    "AccountDef",
    "LedgerConfig",
    "compute_checksum",
    "get_default_config",
    "load_config",
    "parse_config",
    "seed_accounts",
]
