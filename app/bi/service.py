# app/bi/service.py - Catalog browsing, report planning, execution and export

import logging
from typing import Any, Dict, List, NoReturn, Optional, Tuple

from fastapi import HTTPException

from app.bi.catalog import FieldCatalog
from app.bi.engine import ReportEngine
from app.bi.exceptions import ReportConfigurationError, ReportFetchError, UnknownTableError
from app.bi.export import export_filename, to_csv, to_xlsx
from app.bi.schemas import (
    CatalogField, CatalogTable, FilterSet, ReportDefinition, ReportResult, ToggleFieldRequest
)
from app.bi.storage import StorageBackend

logger = logging.getLogger(__name__)

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ReportService:
    """Stateless facade over the report engine for the HTTP layer."""

    def __init__(
        self,
        catalog: FieldCatalog,
        storage: StorageBackend,
        row_limit: int,
        default_filters: Optional[FilterSet] = None,
    ):
        self.catalog = catalog
        self.storage = storage
        self.row_limit = row_limit
        self.default_filters = default_filters or FilterSet()

    def _engine_for(self, definition: ReportDefinition) -> ReportEngine:
        return ReportEngine(self.catalog, self.storage, self.row_limit, definition=definition)

    # ===== CATALOG =====

    def get_catalog(self, search: Optional[str] = None) -> List[CatalogTable]:
        """Tables with their fields; ``search`` filters fields by label or key."""
        tables = []
        for info in self.catalog.get_table_infos():
            fields = self.catalog.search_fields(info.key, search or "")
            if search and not fields:
                continue
            tables.append(CatalogTable(
                key=info.key,
                label=info.label,
                date_column=self.catalog.date_column_for(info.key),
                fields=[CatalogField.model_validate(f) for f in fields],
            ))
        return tables

    def get_default_filters(self) -> FilterSet:
        return self.default_filters

    # ===== SELECTION =====

    def toggle_field(self, request: ToggleFieldRequest) -> ReportDefinition:
        if not self.catalog.has_table(request.table):
            raise HTTPException(status_code=404, detail=f"Table '{request.table}' not found")

        engine = self._engine_for(request.definition)
        engine.toggle_field(request.table, request.field)
        return engine.definition

    # ===== PLANNING / EXECUTION =====

    def preview_plan(self, definition: ReportDefinition) -> Dict[str, Any]:
        """Plans that a run would execute, without touching storage."""
        engine = self._engine_for(definition)
        try:
            plans = engine.plan()
        except (ReportConfigurationError, UnknownTableError) as e:
            self._raise_http(e, definition)

        return {
            "merge_strategy": definition.merge_strategy.value,
            "plans": [plan.model_dump(mode="json") for plan in plans],
        }

    async def run_report(self, definition: ReportDefinition) -> ReportResult:
        engine = self._engine_for(definition)
        try:
            return await engine.run()
        except (ReportConfigurationError, ReportFetchError, UnknownTableError) as e:
            self._raise_http(e, definition)

    async def export_report(self, definition: ReportDefinition, fmt: str) -> Tuple[bytes, str, str]:
        """Run the report and render it; returns (content, media type, file name)."""
        if fmt not in EXPORT_MEDIA_TYPES:
            raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")

        result = await self.run_report(definition)
        if not result.rows:
            raise HTTPException(status_code=400, detail="No data to export")

        if fmt == "csv":
            content = to_csv(result).encode("utf-8")
        else:
            content = to_xlsx(result, definition, definition.filters)

        return content, EXPORT_MEDIA_TYPES[fmt], export_filename(definition.name, fmt)

    # ===== ERRORS =====

    def _raise_http(self, error: Exception, definition: ReportDefinition) -> NoReturn:
        debug_info = {
            "report_name": definition.name,
            "tables": list(dict.fromkeys(f.table for f in definition.fields)),
            "error_type": type(error).__name__,
        }

        if isinstance(error, ReportConfigurationError):
            logger.info("Report '%s' rejected: %s", definition.name, error.message)
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Configuration Error",
                    "message": error.message,
                    "field": error.field,
                    "debug_info": debug_info,
                },
            ) from error

        if isinstance(error, ReportFetchError):
            logger.error("Report '%s' failed on table %s: %s", definition.name, error.table, error)
            raise HTTPException(
                status_code=502,
                detail={
                    "error": "Fetch Error",
                    "message": str(error),
                    "table": error.table,
                    "debug_info": debug_info,
                    "suggestions": [
                        "Check that the data source database is reachable",
                        "Run the report again; failed runs are fully retryable",
                    ],
                },
            ) from error

        logger.error("Report '%s' references an unknown table: %s", definition.name, error)
        raise HTTPException(
            status_code=400,
            detail={"error": "Unknown Table", "message": str(error), "debug_info": debug_info},
        ) from error
