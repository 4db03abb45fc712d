"""
ledger_modules.wip.service
==========================

Responsibility:
    Completes assembly builds: runs the costing rollup against current
    inventory (material availability, unit cost, new average cost) and then
    posts the build.  A rollup failure means nothing is posted.

Usage::

    service = AssemblyService(engine)
    rollup, transaction = service.build(build, inventory)
"""

from __future__ import annotations

from collections.abc import Mapping

from ledger_engines.costing import CostingRollup, RollupResult
from ledger_kernel.domain.documents import AssemblyBuild, InventoryPosition
from ledger_kernel.domain.ledger import Transaction
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.posting_engine import PostingEngine

logger = get_logger("modules.wip.service")


class AssemblyService:
    """Cost and post assembly builds."""

    def __init__(self, engine: PostingEngine, costing: CostingRollup | None = None):
        self._engine = engine
        self._costing = costing or CostingRollup()

    def build(
        self, build: AssemblyBuild, inventory: Mapping[str, InventoryPosition],
    ) -> tuple[RollupResult, Transaction]:
        rollup = self._costing.rollup(build, inventory)
        transaction = self._engine.post(build)
        logger.info("assembly_build_completed", extra={
            "build_id": build.document_id,
            "finished_good_ref": build.finished_good_ref,
            "unit_cost": str(rollup.unit_cost.amount),
            "new_average_cost": str(rollup.new_average_cost.amount),
            "transaction_number": transaction.transaction_number,
        })
        return rollup, transaction
