"""
Multi-table merge and row projection.

Every table referenced by a report is fetched independently; the row sets are
concatenated in table order (a union, never a join) and each row is projected
into a display row keyed by the bare field key.
"""

import asyncio
import logging
from typing import Any, Dict, List, Sequence, Tuple

from app.bi.catalog import ROW_ID_COLUMN
from app.bi.fetcher import TableFetcher
from app.bi.schemas import MergeStrategy, QueryPlan, SelectedField

logger = logging.getLogger(__name__)

# Key under which a display row records the table it came from
DISPLAY_ORIGIN_KEY = "_tabela_origem"


class MultiTableMerge:
    """Fetches every planned table and unions the results."""

    def __init__(self, fetcher: TableFetcher):
        self.fetcher = fetcher

    async def fetch_all(
        self,
        plans: Sequence[QueryPlan],
        strategy: MergeStrategy = MergeStrategy.UNION,
    ) -> List[Tuple[str, Dict[str, Any]]]:
        """Return ``(origin_table, raw_row)`` pairs, table by table.

        Any failed fetch fails the whole merge; no partial result is returned.
        """
        if strategy != MergeStrategy.UNION:
            raise ValueError(f"Unsupported merge strategy: {strategy}")

        if not plans:
            return []

        # Single table: no need for the gather machinery
        if len(plans) == 1:
            plan = plans[0]
            rows = await self.fetcher.fetch(plan)
            return [(plan.table, row) for row in rows]

        results = await asyncio.gather(*(self.fetcher.fetch(plan) for plan in plans))

        merged = []
        for plan, rows in zip(plans, results):
            merged.extend((plan.table, row) for row in rows)

        logger.debug(
            "Merged %d rows from %s",
            len(merged), {plan.table: len(rows) for plan, rows in zip(plans, results)},
        )
        return merged


class RowProjector:
    """Maps raw storage rows to display rows keyed by field key only.

    Two tables contributing a field with the same key share one display
    column.
    """

    def __init__(self, fields: Sequence[SelectedField]):
        self._fields_by_table: Dict[str, List[SelectedField]] = {}
        for selected in fields:
            self._fields_by_table.setdefault(selected.table, []).append(selected)

    def project(self, table: str, raw_row: Dict[str, Any], index: int) -> Dict[str, Any]:
        row_id = raw_row.get(ROW_ID_COLUMN)
        display_row: Dict[str, Any] = {
            "id": row_id if row_id is not None else f"{table}-{index}",
            DISPLAY_ORIGIN_KEY: table,
        }

        for selected in self._fields_by_table.get(table, []):
            if selected.field in raw_row:
                display_row[selected.field] = raw_row[selected.field]

        return display_row

    def project_all(self, tagged_rows: Sequence[Tuple[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Project merged rows; the fallback id index counts within each table."""
        counters: Dict[str, int] = {}
        display_rows = []
        for table, raw_row in tagged_rows:
            index = counters.get(table, 0)
            counters[table] = index + 1
            display_rows.append(self.project(table, raw_row, index))
        return display_rows
