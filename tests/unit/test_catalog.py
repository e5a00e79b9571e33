"""
Unit tests for the field catalog.
Tests table/field lookup, search, and per-table filter metadata.
"""

import pytest

from app.bi.catalog import (
    FieldCatalog, FieldDescriptor, ValueType, get_catalog, DEFAULT_DATE_COLUMN
)


class TestFieldLookup:
    """Test table and field lookups on the financial catalog"""

    def test_tables_in_declaration_order(self, catalog):
        tables = catalog.get_tables()
        assert tables[0] == "despesas"
        assert "funcionarios" in tables
        assert "requisicoes" in tables

    def test_get_field(self, catalog):
        field = catalog.get_field("despesas", "valor")
        assert field is not None
        assert field.value_type == ValueType.CURRENCY
        assert field.aggregatable is True

    def test_get_unknown_field_returns_none(self, catalog):
        assert catalog.get_field("despesas", "nao_existe") is None
        assert catalog.get_field("tabela_inexistente", "valor") is None

    def test_unknown_table_has_no_fields(self, catalog):
        assert catalog.get_fields("tabela_inexistente") == []
        assert catalog.has_table("tabela_inexistente") is False

    def test_count_fields_are_not_aggregatable(self, catalog):
        """Installment counts are numbers but not measures"""
        field = catalog.get_field("despesas_variaveis", "numero_parcelas")
        assert field.value_type == ValueType.NUMBER
        assert field.aggregatable is False

    def test_prioritized_fields_first(self, catalog):
        fields = catalog.get_fields_by_priority("despesas")
        assert fields[0].key == "numero_documento"

    def test_table_label_falls_back_to_key(self, catalog):
        assert catalog.get_table_label("funcionarios") == "Funcionários"
        assert catalog.get_table_label("outra") == "outra"

    def test_mismatched_descriptor_rejected(self):
        with pytest.raises(ValueError):
            FieldCatalog(fields={"obras": [FieldDescriptor("despesas", "valor", "Valor", ValueType.CURRENCY)]})

    def test_application_catalog_is_cached(self):
        assert get_catalog() is get_catalog()


class TestFieldSearch:
    """Test catalog search over labels and keys"""

    def test_search_by_label_is_case_insensitive(self, catalog):
        results = catalog.search_fields("despesas", "CATEGORIA")
        assert [f.key for f in results] == ["categoria"]

    def test_search_by_key(self, catalog):
        results = catalog.search_fields("despesas_variaveis", "valor_compra")
        assert [f.key for f in results] == ["valor_compra"]

    def test_empty_search_returns_all(self, catalog):
        assert len(catalog.search_fields("obras", "")) == len(catalog.get_fields("obras"))


class TestFilterMetadata:
    """Test date column and entity filter metadata"""

    @pytest.mark.parametrize("table,expected", [
        ("despesas", "data_despesa"),
        ("despesas_variaveis", "data_compra"),
        ("obras", "data_inicio"),
        ("requisicoes", "data_vencimento"),
        ("funcionarios", DEFAULT_DATE_COLUMN),
        ("clientes", DEFAULT_DATE_COLUMN),
    ])
    def test_date_column_for(self, catalog, table, expected):
        assert catalog.date_column_for(table) == expected

    def test_entity_filter_allow_list(self, catalog):
        assert catalog.supports_entity_filter("despesas", "cliente_id")
        assert catalog.supports_entity_filter("obras", "cliente_id")
        assert catalog.supports_entity_filter("requisicoes", "obra_id")
        assert not catalog.supports_entity_filter("funcionarios", "obra_id")
        assert not catalog.supports_entity_filter("despesas_variaveis", "cliente_id")

    def test_entity_filter_names(self, catalog):
        assert set(catalog.entity_filter_names()) == {"cliente_id", "obra_id"}
