"""Field selection model: which (table, field) pairs a report shows."""

from typing import List, Optional

from app.bi.catalog import FieldCatalog
from app.bi.schemas import ReportDefinition, SelectedField


class FieldSelection:
    """Edits the ordered field list of a report definition in place.

    Insertion order is the default column order. A (table, field) pair is
    selected at most once.
    """

    def __init__(self, definition: ReportDefinition, catalog: FieldCatalog):
        self.definition = definition
        self.catalog = catalog

    @property
    def fields(self) -> List[SelectedField]:
        return self.definition.fields

    def is_selected(self, table: str, key: str) -> bool:
        return self._find(table, key) is not None

    def toggle_field(self, table: str, key: str) -> None:
        """Remove the field if selected, otherwise append it from the catalog."""
        if self.is_selected(table, key):
            self.remove_field(table, key)
            return

        descriptor = self.catalog.get_field(table, key)
        if descriptor is None:
            return

        self.definition.fields.append(
            SelectedField(
                table=table,
                field=key,
                alias=descriptor.label,
                value_type=descriptor.value_type,
            )
        )

    def remove_field(self, table: str, key: str) -> None:
        self.definition.fields = [
            f for f in self.definition.fields if not (f.table == table and f.field == key)
        ]

    def rename_field(self, table: str, key: str, alias: str) -> None:
        selected = self._find(table, key)
        if selected is not None:
            selected.alias = alias.strip() or None

    def tables(self) -> List[str]:
        """Distinct tables in the order they first appear in the selection."""
        return distinct_tables(self.definition.fields)

    def fields_for_table(self, table: str) -> List[SelectedField]:
        return [f for f in self.definition.fields if f.table == table]

    def _find(self, table: str, key: str) -> Optional[SelectedField]:
        for selected in self.definition.fields:
            if selected.table == table and selected.field == key:
                return selected
        return None


def distinct_tables(fields: List[SelectedField]) -> List[str]:
    tables: List[str] = []
    for selected in fields:
        if selected.table not in tables:
            tables.append(selected.table)
    return tables
