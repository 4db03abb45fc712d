"""Work in process: assembly builds."""

from ledger_modules.wip.profiles import AccountRole, AssemblyBuildRule
from ledger_modules.wip.service import AssemblyService

__all__ = ["AccountRole", "AssemblyBuildRule", "AssemblyService"]
