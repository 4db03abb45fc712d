"""
Module: ledger_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.  This is
    the import surface for ledger_modules and for callers computing totals
    before posting.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel.domain, ledger_kernel.exceptions and
    ledger_kernel.logging_config.  MUST NOT import ledger_kernel.services
    or ledger_modules.

Invariants enforced:
    - Engines never read the clock; dates come in on the documents.
    - Decimal-only arithmetic through ledger_kernel.domain.arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from ledger_engines import CostingRollup, DocumentTotalsCalculator, TaxEvaluator
"""

from ledger_engines.costing import (
    BomLine,
    BuildCosts,
    ComponentCost,
    CostingRollup,
    RollupResult,
)
from ledger_engines.tax import AppliedTax, LineTaxResult, TaxEvaluator
from ledger_engines.totals import DocumentTotals, DocumentTotalsCalculator, LineTotals

__all__ = [
    "AppliedTax",
    "BomLine",
    "BuildCosts",
    "ComponentCost",
    "CostingRollup",
    "DocumentTotals",
    "DocumentTotalsCalculator",
    "LineTaxResult",
    "LineTotals",
    "RollupResult",
    "TaxEvaluator",
]
