"""
Per-table query planner for the BI report engine.

Builds one query plan per distinct table referenced by a report. A plan is a
column projection (row id first) plus a predicate list made of the period
filter, translated to the table's own date column, and the entity filters the
table understands. No joins are planned: tables are queried independently and
their rows are unioned by the merge step.
"""

import logging
from typing import List, Optional, Sequence

from app.bi.catalog import FieldCatalog, ROW_ID_COLUMN
from app.bi.exceptions import UnknownTableError
from app.bi.schemas import (
    FilterSet, Predicate, PredicateOperator, QueryPlan, ReportDefinition, SelectedField
)
from app.bi.selection import distinct_tables

logger = logging.getLogger(__name__)


class QueryPlanner:
    """Builds query plans from a field selection and a filter set."""

    def __init__(self, catalog: FieldCatalog, row_limit: int):
        self.catalog = catalog
        self.row_limit = row_limit

    def build_plan(
        self,
        table: str,
        fields_for_table: Sequence[SelectedField],
        filters: FilterSet,
    ) -> Optional[QueryPlan]:
        """Build the plan for one table, or None when no field of it is selected."""
        if not self.catalog.has_table(table):
            raise UnknownTableError(table)

        if not fields_for_table:
            return None

        columns = self._build_columns(fields_for_table)
        predicates = self._build_date_predicates(table, filters)
        predicates.extend(self._build_entity_predicates(table, filters))

        plan = QueryPlan(table=table, columns=columns, predicates=predicates, limit=self.row_limit)
        logger.debug(
            "Planned %s: columns=%s predicates=%s",
            table, plan.columns, [(p.column, p.op.value, p.value) for p in plan.predicates],
        )
        return plan

    def plan_all(self, definition: ReportDefinition) -> List[QueryPlan]:
        """One plan per distinct selected table, in first-appearance order."""
        plans = []
        for table in distinct_tables(definition.fields):
            fields = [f for f in definition.fields if f.table == table]
            plan = self.build_plan(table, fields, definition.filters)
            if plan is not None:
                plans.append(plan)
        return plans

    def _build_columns(self, fields_for_table: Sequence[SelectedField]) -> List[str]:
        columns = [ROW_ID_COLUMN]
        for selected in fields_for_table:
            if selected.field not in columns:
                columns.append(selected.field)
        return columns

    def _build_date_predicates(self, table: str, filters: FilterSet) -> List[Predicate]:
        if not filters.has_date_range():
            return []

        date_column = self.catalog.date_column_for(table)
        return [
            Predicate(column=date_column, op=PredicateOperator.GTE, value=filters.date_start),
            Predicate(column=date_column, op=PredicateOperator.LTE, value=filters.date_end),
        ]

    def _build_entity_predicates(self, table: str, filters: FilterSet) -> List[Predicate]:
        predicates = []
        for filter_name, value in filters.active_entity_filters().items():
            # Master-data tables silently ignore filters they cannot apply
            if self.catalog.supports_entity_filter(table, filter_name):
                predicates.append(Predicate(column=filter_name, op=PredicateOperator.EQ, value=value))
        return predicates
