"""Storage capability consumed by the table fetcher."""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import DateTime, MetaData, Table, and_, select
from sqlalchemy.engine import Engine

from app.bi.exceptions import UnknownTableError
from app.bi.schemas import Predicate, PredicateOperator


class StorageBackend(Protocol):
    """``query(table, columns, predicates, limit) -> rows``; failures raise."""

    def query(
        self,
        table: str,
        columns: Sequence[str],
        predicates: Sequence[Predicate],
        limit: int,
    ) -> List[Dict[str, Any]]:
        ...


class SqlAlchemyStorage:
    """Reads rows from the data source database with SQLAlchemy Core.

    Tables come from a typed metadata registry; a table missing from it is a
    programming error. Each call runs on its own connection so calls can be
    issued concurrently from worker threads.
    """

    def __init__(self, engine: Engine, metadata: Optional[MetaData] = None):
        if metadata is None:
            from app.core.database import DataBase
            from app.datasource import models  # noqa: F401

            metadata = DataBase.metadata
        self.engine = engine
        self.metadata = metadata

    def query(
        self,
        table: str,
        columns: Sequence[str],
        predicates: Sequence[Predicate],
        limit: int,
    ) -> List[Dict[str, Any]]:
        model = self._get_table(table)

        # Filters must apply; a filter column the table lacks is a catalog error
        missing = [p.column for p in predicates if p.column not in model.c]
        if missing:
            raise ValueError(f"Table '{table}' has no filter column(s): {', '.join(missing)}")

        # Missing columns are left out of the projection and read as absent
        selected_columns = [model.c[name] for name in columns if name in model.c]
        if not selected_columns:
            return []

        stmt = select(*selected_columns)

        conditions = [self._build_condition(model, p) for p in predicates]
        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.limit(limit)

        with self.engine.connect() as conn:
            result = conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    def _get_table(self, table: str) -> Table:
        model = self.metadata.tables.get(table)
        if model is None:
            raise UnknownTableError(table)
        return model

    def _build_condition(self, model: Table, predicate: Predicate):
        column = model.c[predicate.column]
        value = predicate.value
        on_timestamp = isinstance(column.type, DateTime) and type(value) is date
        if predicate.op == PredicateOperator.GTE:
            if on_timestamp:
                value = datetime.combine(value, time.min)
            return column >= value
        elif predicate.op == PredicateOperator.LTE:
            # A date upper bound on a timestamp column includes the whole day
            if on_timestamp:
                value = datetime.combine(value, time.max)
            return column <= value
        elif predicate.op == PredicateOperator.EQ:
            return column == predicate.value
        else:
            raise ValueError(f"Unsupported predicate operator: {predicate.op}")
