"""Quantity maps: drink counts keyed by (DrinkType, MeasureType).

Absent units count as zero. A count can never drop below zero: an `add`
that would do so raises instead of clamping.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from src.bb_common.enums import DrinkType, MeasureType
from src.bb_common.errors import ValidationError

DrinkUnit = tuple[DrinkType, MeasureType]


@dataclass
class QuantityMap:
    counts: dict[DrinkUnit, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for (drink_type, measure_type), count in self.counts.items():
            if count < 0:
                raise ValidationError(
                    f"negative count {count} for {measure_type.value} {drink_type.value}"
                )
        # Zero entries are implicit
        self.counts = {unit: c for unit, c in self.counts.items() if c}

    def get(self, drink_type: DrinkType, measure_type: MeasureType) -> int:
        return self.counts.get((drink_type, measure_type), 0)

    def add(self, drink_type: DrinkType, measure_type: MeasureType, amount: int) -> None:
        """Add a (possibly negative) amount to one unit."""
        new_count = self.get(drink_type, measure_type) + amount
        if new_count < 0:
            raise ValidationError(
                f"{measure_type.value} {drink_type.value} would become negative ({new_count})"
            )
        if new_count == 0:
            self.counts.pop((drink_type, measure_type), None)
        else:
            self.counts[(drink_type, measure_type)] = new_count

    def items(self) -> Iterator[tuple[DrinkUnit, int]]:
        # Enum declaration order keeps output stable
        for drink_type in DrinkType:
            for measure_type in MeasureType:
                count = self.counts.get((drink_type, measure_type), 0)
                if count:
                    yield (drink_type, measure_type), count

    def total(self) -> int:
        return sum(self.counts.values())

    def to_nested(self) -> dict[str, dict[str, int]]:
        """{drink: {measure: count}} with zero entries omitted."""
        nested: dict[str, dict[str, int]] = {}
        for (drink_type, measure_type), count in self.items():
            nested.setdefault(drink_type.value, {})[measure_type.value] = count
        return nested


def sum_by_unit(entries: Iterable[tuple[DrinkType, MeasureType, int]]) -> QuantityMap:
    """Total a batch of (drink, measure, amount) entries per unit."""
    totals = QuantityMap()
    for drink_type, measure_type, amount in entries:
        totals.add(drink_type, measure_type, amount)
    return totals
