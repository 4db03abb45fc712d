"""
Ledger Kernel

Double-entry posting core for commercial documents:
- Exact decimal money arithmetic with explicit rounding
- Balanced transactions (sum of debits equals sum of credits)
- Account-type-aware running balances
- Idempotent, all-or-nothing posting
"""

__version__ = "0.1.0"
