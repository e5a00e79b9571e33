"""Pydantic schemas for the BI report engine."""

from typing import Optional, List, Dict, Any, Union
from datetime import date
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.bi.catalog import ValueType

ALL_ENTITIES = "all"


class MergeStrategy(str, Enum):
    """How per-table row sets are combined into one result."""

    UNION = "union"


class PredicateOperator(str, Enum):
    GTE = "gte"
    LTE = "lte"
    EQ = "eq"


class FormatterKind(str, Enum):
    """Render contract handed to the presentation layer."""

    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"


# ===== REPORT DEFINITION =====


class SelectedField(BaseModel):
    """A (table, field) pair chosen by the user.

    ``value_type`` is captured from the catalog at selection time and never
    re-read, so later catalog edits do not change an existing report.
    """

    table: str
    field: str
    alias: Optional[str] = None
    value_type: ValueType = ValueType.TEXT

    model_config = ConfigDict(from_attributes=True)

    @property
    def title(self) -> str:
        return self.alias or self.field


class FilterSet(BaseModel):
    """Cross-table filters of a report run."""

    date_start: Optional[date] = None
    date_end: Optional[date] = None
    entity_filters: Dict[str, Optional[str]] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def active_entity_filters(self) -> Dict[str, str]:
        """Entity filters that actually restrict rows."""
        return {
            name: value
            for name, value in self.entity_filters.items()
            if value not in (None, "", ALL_ENTITIES)
        }

    def has_date_range(self) -> bool:
        return self.date_start is not None and self.date_end is not None


class ReportDefinition(BaseModel):
    """Unit handed to template persistence and to exporters."""

    name: str = "Relatório sem nome"
    description: Optional[str] = None
    fields: List[SelectedField] = Field(default_factory=list)
    filters: FilterSet = Field(default_factory=FilterSet)
    merge_strategy: MergeStrategy = MergeStrategy.UNION

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            return "Relatório sem nome"
        if len(v.strip()) > 255:
            raise ValueError("Report name cannot exceed 255 characters")
        return v.strip()


# ===== QUERY PLAN =====


class Predicate(BaseModel):
    column: str
    op: PredicateOperator
    value: Union[date, str, int, float, bool]


class QueryPlan(BaseModel):
    """Column projection and predicate list for one table."""

    table: str
    columns: List[str]
    predicates: List[Predicate] = Field(default_factory=list)
    limit: int


class RawRow(BaseModel):
    """A storage row; any projected column is kept as an extra attribute."""

    id: Optional[Union[str, int]] = None

    model_config = ConfigDict(extra="allow")


# ===== RESULT =====


class ColumnDescriptor(BaseModel):
    key: str
    title: str
    value_type: ValueType
    formatter: FormatterKind


class ReportMetadata(BaseModel):
    total_rows: int
    execution_time_ms: float
    tables: List[str]
    rows_per_table: Dict[str, int]
    filters: FilterSet
    merge_strategy: MergeStrategy = MergeStrategy.UNION


class ReportResult(BaseModel):
    rows: List[Dict[str, Any]]
    columns: List[ColumnDescriptor]
    aggregates: Dict[str, float]
    metadata: ReportMetadata
    superseded: bool = False


# ===== API REQUESTS =====


class ToggleFieldRequest(BaseModel):
    definition: ReportDefinition
    table: str
    field: str

    model_config = ConfigDict(extra="forbid")


class CatalogField(BaseModel):
    key: str
    label: str
    value_type: ValueType
    aggregatable: bool
    groupable: bool
    description: Optional[str] = None
    priority: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class CatalogTable(BaseModel):
    key: str
    label: str
    date_column: str
    fields: List[CatalogField]
