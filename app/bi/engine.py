"""
Report engine: validation, execution and run bookkeeping.

A run goes validate -> plan -> fetch/merge -> project -> aggregate -> columns.
Configuration problems are rejected before any fetch. Runs are not cancelled:
when a newer run starts while one is in flight, the older one still completes
but its result is flagged as superseded and never published.
"""

import logging
import time
from enum import Enum
from typing import List, Optional

from app.bi.aggregation import compute_aggregates
from app.bi.catalog import FieldCatalog
from app.bi.columns import build_columns
from app.bi.exceptions import ReportConfigurationError
from app.bi.fetcher import TableFetcher
from app.bi.merge import MultiTableMerge, RowProjector
from app.bi.planner import QueryPlanner
from app.bi.schemas import FilterSet, QueryPlan, ReportDefinition, ReportMetadata, ReportResult
from app.bi.selection import FieldSelection
from app.bi.storage import StorageBackend

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    EXECUTING = "executing"


class ReportEngine:
    """Owns one report definition and executes it against a storage backend."""

    def __init__(
        self,
        catalog: FieldCatalog,
        storage: StorageBackend,
        row_limit: int,
        definition: Optional[ReportDefinition] = None,
    ):
        self.catalog = catalog
        self.definition = definition or ReportDefinition()
        self.selection = FieldSelection(self.definition, catalog)
        self.planner = QueryPlanner(catalog, row_limit)
        self.merge = MultiTableMerge(TableFetcher(storage))

        self.last_result: Optional[ReportResult] = None
        self._run_seq = 0
        self._state = EngineState.CONFIGURING if self.definition.fields else EngineState.IDLE

    # ===== STATE =====

    @property
    def state(self) -> EngineState:
        return self._state

    def _mark_edited(self) -> None:
        # An edit supersedes any in-flight run
        if self._state == EngineState.EXECUTING:
            self._run_seq += 1
        self._state = EngineState.CONFIGURING if self.definition.fields else EngineState.IDLE

    # ===== EDITING =====

    def toggle_field(self, table: str, key: str) -> None:
        self.selection.toggle_field(table, key)
        self._mark_edited()

    def remove_field(self, table: str, key: str) -> None:
        self.selection.remove_field(table, key)
        self._mark_edited()

    def rename_field(self, table: str, key: str, alias: str) -> None:
        self.selection.rename_field(table, key, alias)
        self._mark_edited()

    def is_selected(self, table: str, key: str) -> bool:
        return self.selection.is_selected(table, key)

    def set_filters(self, **changes) -> None:
        """Update filter values, e.g. ``set_filters(date_end=date(2024, 1, 31))``."""
        self.definition.filters = FilterSet.model_validate(
            {**self.definition.filters.model_dump(), **changes}
        )
        self._mark_edited()

    # ===== VALIDATION / PLANNING =====

    def validate(self) -> None:
        """Raise ReportConfigurationError when the report cannot run."""
        filters = self.definition.filters

        if not self.definition.fields:
            raise ReportConfigurationError("Selecione pelo menos um campo.", field="fields")

        if filters.date_start is None or filters.date_end is None:
            raise ReportConfigurationError(
                "Informe as datas de início e fim.",
                field="date_start" if filters.date_start is None else "date_end",
            )

        if filters.date_end < filters.date_start:
            raise ReportConfigurationError(
                "A data de início deve ser anterior à data de fim.", field="date_end"
            )

    def plan(self) -> List[QueryPlan]:
        self.validate()
        return self.planner.plan_all(self.definition)

    # ===== EXECUTION =====

    async def run(self) -> ReportResult:
        """Execute the report.

        Configuration errors propagate before the state changes. Fetch
        errors propagate after the engine returns to CONFIGURING and the
        cached result is cleared.
        """
        plans = self.plan()

        self._run_seq += 1
        run_id = self._run_seq
        self._state = EngineState.EXECUTING
        start_time = time.time()

        # Snapshot so that edits made while awaiting do not leak into this run
        fields = [f.model_copy() for f in self.definition.fields]
        filters = self.definition.filters.model_copy()

        try:
            tagged_rows = await self.merge.fetch_all(plans, self.definition.merge_strategy)
        except Exception:
            if run_id == self._run_seq:
                self.last_result = None
                self._state = EngineState.CONFIGURING
            raise

        rows = RowProjector(fields).project_all(tagged_rows)

        rows_per_table = {plan.table: 0 for plan in plans}
        for table, _ in tagged_rows:
            rows_per_table[table] += 1

        result = ReportResult(
            rows=rows,
            columns=build_columns(fields),
            aggregates=compute_aggregates(rows, fields),
            metadata=ReportMetadata(
                total_rows=len(rows),
                execution_time_ms=(time.time() - start_time) * 1000,
                tables=[plan.table for plan in plans],
                rows_per_table=rows_per_table,
                filters=filters,
                merge_strategy=self.definition.merge_strategy,
            ),
        )

        if run_id != self._run_seq:
            logger.info("Run %d was superseded; discarding its result", run_id)
            result.superseded = True
            return result

        self.last_result = result
        self._state = EngineState.CONFIGURING
        logger.info(
            "Report '%s' returned %d rows from %s in %.1f ms",
            self.definition.name, result.metadata.total_rows,
            rows_per_table, result.metadata.execution_time_ms,
        )
        return result
