"""
Costing Engine - Assembly build cost rollup and weighted-average update.

Pure functions with no I/O. Inventory positions are provided as
parameters; the caller persists the new average cost.

Usage:
    from ledger_engines.costing import CostingRollup

    result = CostingRollup().rollup(build, inventory={
        "RM-1": InventoryPosition("RM-1", Decimal("1000"), Money.of("5", "USD")),
        "FG-1": InventoryPosition("FG-1", Decimal("100"), Money.of("40", "USD")),
    })
    print(result.unit_cost, result.new_average_cost)
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ledger_kernel.domain.arithmetic import (
    UNIT_COST_DECIMAL_PLACES,
    add,
    divide,
    multiply,
    percentage_of,
    to_decimal,
)
from ledger_kernel.domain.documents import (
    AssemblyBuild,
    ComponentConsumption,
    InventoryPosition,
    validate_rate,
)
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import (
    InsufficientMaterialError,
    InvalidAmountError,
    InvalidOutputQuantityError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.costing")

_FULL_YIELD = Decimal("100")


@dataclass(frozen=True)
class BomLine:
    """Bill-of-material line: component quantity per finished unit plus scrap allowance."""

    component_ref: str
    quantity_per: Decimal
    scrap_percent: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        quantity_per = to_decimal(self.quantity_per)
        if quantity_per < 0:
            raise InvalidAmountError(self.quantity_per, "quantity per unit must be non-negative")
        object.__setattr__(self, "quantity_per", quantity_per)
        object.__setattr__(self, "scrap_percent", validate_rate(self.scrap_percent))


@dataclass(frozen=True)
class ComponentCost:
    component_ref: str
    quantity: Decimal
    unit_cost: Money
    cost: Money


@dataclass(frozen=True)
class BuildCosts:
    """Cost legs of a build, each rounded to currency precision."""

    material_cost: Money
    labor_cost: Money
    overhead_cost: Money
    excise_amount: Money
    components: tuple[ComponentCost, ...]

    @property
    def total_cost(self) -> Money:
        return self.material_cost + self.labor_cost + self.overhead_cost


@dataclass(frozen=True)
class RollupResult:
    """
    Outcome of costing one assembly build.

    ``unit_cost`` and ``new_average_cost`` carry ``unit_cost_places`` (4 by default);
    monetary totals carry the currency precision. Wastage is recorded for
    audit and does not change ``unit_cost``.
    """

    build_id: str
    finished_good_ref: str
    costs: BuildCosts
    output_quantity: Decimal
    unit_cost: Money
    new_average_cost: Money
    new_quantity_on_hand: Decimal
    wastage_quantity: Decimal
    wastage_cost: Money

    @property
    def material_cost(self) -> Money:
        return self.costs.material_cost

    @property
    def labor_cost(self) -> Money:
        return self.costs.labor_cost

    @property
    def overhead_cost(self) -> Money:
        return self.costs.overhead_cost

    @property
    def total_cost(self) -> Money:
        return self.costs.total_cost

    @property
    def excise_amount(self) -> Money:
        return self.costs.excise_amount

    @property
    def component_costs(self) -> tuple[ComponentCost, ...]:
        return self.costs.components


class CostingRollup:
    """
    Compute build cost, unit cost and the finished good's new average cost.

    total_cost = sum(component qty x unit cost) + labor + overhead
    unit_cost = total_cost / output_quantity
    new_average = (on_hand x average + total_cost) / (on_hand + output_quantity)
    """

    def __init__(self, unit_cost_places: int = UNIT_COST_DECIMAL_PLACES):
        self._unit_cost_places = unit_cost_places

    def costs(self, build: AssemblyBuild) -> BuildCosts:
        """Cost legs of ``build`` without checking inventory."""
        currency = build.currency
        components = tuple(
            ComponentCost(
                component_ref=c.component_ref,
                quantity=c.quantity,
                unit_cost=c.unit_cost,
                cost=c.cost.round(),
            )
            for c in build.components
        )
        material = Money.sum((c.cost for c in components), currency)
        labor = build.labor_cost.round()
        overhead = build.overhead_cost.round()
        excise = Money.zero(currency)
        if build.excise_rate is not None:
            excise = (material + labor + overhead).percentage(build.excise_rate).round()
        return BuildCosts(
            material_cost=material,
            labor_cost=labor,
            overhead_cost=overhead,
            excise_amount=excise,
            components=components,
        )

    def check_materials(
        self, build: AssemblyBuild, inventory: Mapping[str, InventoryPosition],
    ) -> None:
        """Raise InsufficientMaterialError for the first component short on hand."""
        required: dict[str, Decimal] = {}
        for component in build.components:
            required[component.component_ref] = add(
                required.get(component.component_ref, Decimal("0")), component.quantity,
            )
        for component_ref, quantity in required.items():
            position = inventory.get(component_ref)
            on_hand = position.quantity_on_hand if position is not None else Decimal("0")
            if quantity > on_hand:
                logger.error("assembly_insufficient_material", extra={
                    "build_id": build.document_id,
                    "component_ref": component_ref,
                    "on_hand": str(on_hand),
                    "required": str(quantity),
                })
                raise InsufficientMaterialError(component_ref, str(on_hand), str(quantity))

    def rollup(
        self, build: AssemblyBuild, inventory: Mapping[str, InventoryPosition],
    ) -> RollupResult:
        t0 = time.monotonic()
        logger.info("costing_rollup_started", extra={
            "build_id": build.document_id,
            "finished_good_ref": build.finished_good_ref,
            "component_count": len(build.components),
            "output_quantity": str(build.output_quantity),
        })

        if build.output_quantity <= 0:
            logger.error("costing_rollup_invalid_output", extra={
                "build_id": build.document_id,
                "output_quantity": str(build.output_quantity),
            })
            raise InvalidOutputQuantityError(build.document_id, str(build.output_quantity))

        self.check_materials(build, inventory)

        costs = self.costs(build)
        currency = build.currency
        total = costs.total_cost
        unit_cost = Money(divide(total.amount, build.output_quantity), currency).round(
            self._unit_cost_places
        )

        existing = inventory.get(build.finished_good_ref)
        existing_qty = existing.quantity_on_hand if existing is not None else Decimal("0")
        existing_value = (
            multiply(existing_qty, existing.average_cost.amount) if existing is not None else Decimal("0")
        )
        new_qty = add(existing_qty, build.output_quantity)
        new_average = Money(divide(add(existing_value, total.amount), new_qty), currency).round(
            self._unit_cost_places
        )
        wastage_cost = (unit_cost * build.wastage_quantity).round()

        result = RollupResult(
            build_id=build.document_id,
            finished_good_ref=build.finished_good_ref,
            costs=costs,
            output_quantity=build.output_quantity,
            unit_cost=unit_cost,
            new_average_cost=new_average,
            new_quantity_on_hand=new_qty,
            wastage_quantity=build.wastage_quantity,
            wastage_cost=wastage_cost,
        )

        logger.info("costing_rollup_completed", extra={
            "build_id": build.document_id,
            "material_cost": str(costs.material_cost.amount),
            "labor_cost": str(costs.labor_cost.amount),
            "overhead_cost": str(costs.overhead_cost.amount),
            "total_cost": str(total.amount),
            "unit_cost": str(unit_cost.amount),
            "new_average_cost": str(new_average.amount),
            "excise_amount": str(costs.excise_amount.amount),
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return result

    def explode_bom(
        self,
        bom_lines: Sequence[BomLine],
        output_quantity: Decimal | int | str,
        inventory: Mapping[str, InventoryPosition],
        currency: Currency | str,
        yield_percent: Decimal | int | str = _FULL_YIELD,
    ) -> tuple[ComponentConsumption, ...]:
        """
        Turn BOM lines into component consumption for ``output_quantity`` units.

        required = quantity_per x output / (yield% / 100) x (1 + scrap% / 100),
        costed at each component's current average cost.
        """
        output = to_decimal(output_quantity)
        yield_pct = to_decimal(yield_percent)
        if yield_pct <= 0 or yield_pct > _FULL_YIELD:
            raise InvalidAmountError(yield_percent, "yield percent must be in (0, 100]")
        currency = currency if isinstance(currency, Currency) else Currency(currency)

        consumption = []
        for line in bom_lines:
            before_scrap = divide(multiply(line.quantity_per, output), divide(yield_pct, 100))
            required = add(before_scrap, percentage_of(before_scrap, line.scrap_percent))
            position = inventory.get(line.component_ref)
            unit_cost = position.average_cost if position is not None else Money.zero(currency)
            consumption.append(ComponentConsumption(
                component_ref=line.component_ref,
                quantity=required,
                unit_cost=unit_cost,
            ))

        logger.debug("bom_exploded", extra={
            "line_count": len(consumption),
            "output_quantity": str(output),
            "yield_percent": str(yield_pct),
        })
        return tuple(consumption)
