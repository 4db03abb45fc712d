"""
Work-in-Process Posting Profiles (``ledger_modules.wip.profiles``).

Profiles:
    AssemblyBuildRule -- Dr Finished Goods / Cr Raw Materials + Labor
                         Applied + Overhead Applied; excise as a separate
                         Dr Excise Clearing / Cr Excise Payable leg
"""

from __future__ import annotations

from enum import Enum

from ledger_engines.costing import CostingRollup
from ledger_kernel.domain.documents import AssemblyBuild, DocumentKind
from ledger_kernel.domain.ledger import LineSpec
from ledger_kernel.exceptions import InvalidOutputQuantityError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.posting_rules.base import BasePostingRule
from ledger_kernel.posting_rules.registry import PostingRuleRegistry

logger = get_logger("modules.wip.profiles")

MODULE_NAME = "wip"


class AccountRole(str, Enum):
    """Logical account roles for WIP."""

    FINISHED_GOODS = "FINISHED_GOODS"
    RAW_MATERIALS = "RAW_MATERIALS"
    LABOR_APPLIED = "LABOR_APPLIED"
    OVERHEAD_APPLIED = "OVERHEAD_APPLIED"
    EXCISE_CLEARING = "EXCISE_CLEARING"
    EXCISE_PAYABLE = "EXCISE_PAYABLE"


class AssemblyBuildRule(BasePostingRule):
    """
    Assembly build completed.

    Finished goods are capitalised at total cost and absorb any rounding
    residue.  The excise leg balances on its own, so the manufacturing
    entries balance with or without it.
    """

    def __init__(self, costing: CostingRollup | None = None):
        self._costing = costing or CostingRollup()

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.ASSEMBLY_BUILD

    def validate(self, document: AssemblyBuild) -> None:
        super().validate(document)
        if document.output_quantity <= 0:
            raise InvalidOutputQuantityError(document.document_id, str(document.output_quantity))

    def compute_lines(self, document: AssemblyBuild) -> list[LineSpec]:
        costs = self._costing.costs(document)
        lines = [
            LineSpec.debit(costs.total_cost, role=AccountRole.FINISHED_GOODS,
                           description=f"Finished goods {document.finished_good_ref}",
                           is_residual=True),
            LineSpec.credit(costs.material_cost, role=AccountRole.RAW_MATERIALS,
                            description="Materials consumed"),
            LineSpec.credit(costs.labor_cost, role=AccountRole.LABOR_APPLIED,
                            description="Labor applied"),
            LineSpec.credit(costs.overhead_cost, role=AccountRole.OVERHEAD_APPLIED,
                            description="Overhead applied"),
        ]
        if costs.excise_amount.is_positive:
            lines += [
                LineSpec.debit(costs.excise_amount, role=AccountRole.EXCISE_CLEARING,
                               description="Excise duty"),
                LineSpec.credit(costs.excise_amount, role=AccountRole.EXCISE_PAYABLE,
                                description="Excise duty payable"),
            ]
        return lines


def register(registry: PostingRuleRegistry) -> None:
    """Register all WIP rules."""
    registry.register(AssemblyBuildRule())
    logger.info("wip_profiles_registered", extra={"profile_count": 1})
