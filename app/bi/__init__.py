"""
Dynamic multi-table report engine (BI builder/visualizer).

Main Components:
- FieldCatalog: read-only registry of tables, fields and filter metadata
- FieldSelection: ordered (table, field) picks with toggle semantics
- QueryPlanner: one column projection + predicate list per table
- TableFetcher / MultiTableMerge: concurrent per-table fetch, unioned
- RowProjector, compute_aggregates, build_columns: display rows, totals, columns
- ReportEngine: validation, execution and run bookkeeping
"""

from .catalog import FieldCatalog, FieldDescriptor, ValueType, build_financial_catalog, get_catalog
from .engine import EngineState, ReportEngine
from .exceptions import (
    ReportConfigurationError,
    ReportEngineError,
    ReportFetchError,
    UnknownTableError,
)
from .schemas import (
    ColumnDescriptor,
    FilterSet,
    MergeStrategy,
    Predicate,
    QueryPlan,
    ReportDefinition,
    ReportResult,
    SelectedField,
)

__all__ = [
    # Catalog
    "FieldCatalog",
    "FieldDescriptor",
    "ValueType",
    "build_financial_catalog",
    "get_catalog",
    # Engine
    "ReportEngine",
    "EngineState",
    # Errors
    "ReportEngineError",
    "ReportConfigurationError",
    "ReportFetchError",
    "UnknownTableError",
    # Types
    "SelectedField",
    "FilterSet",
    "ReportDefinition",
    "MergeStrategy",
    "Predicate",
    "QueryPlan",
    "ColumnDescriptor",
    "ReportResult",
]
