"""Column totals for numeric-family fields."""

import math
from typing import Any, Dict, List, Mapping, Sequence

from app.bi.catalog import NUMERIC_VALUE_TYPES
from app.bi.schemas import SelectedField


def to_number(value: Any) -> float:
    """Coerce a cell to a number; anything unparseable counts as zero."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def aggregatable_fields(fields: Sequence[SelectedField]) -> List[SelectedField]:
    """Selected fields that receive a total."""
    return [f for f in fields if f.value_type in NUMERIC_VALUE_TYPES]


def compute_aggregates(
    rows: Sequence[Mapping[str, Any]],
    fields: Sequence[SelectedField],
) -> Dict[str, float]:
    """Sum every number/currency field over all rows.

    Rows lacking the field (e.g. rows from another table) contribute zero.
    """
    totals: Dict[str, float] = {}
    for selected in aggregatable_fields(fields):
        totals[selected.field] = sum((to_number(row.get(selected.field)) for row in rows), 0.0)
    return totals
