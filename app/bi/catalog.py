"""Field catalog for dynamic report building.

The catalog maps every queryable table to the fields a user may pick for a
report, together with the per-table date column used by the period filter and
the entity filters each table understands. It is built once at application
start and is read-only afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Sequence, FrozenSet

DEFAULT_DATE_COLUMN = "created_at"
ROW_ID_COLUMN = "id"


class ValueType(str, Enum):
    """Semantic type of a field, drives formatting and aggregation."""

    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"


NUMERIC_VALUE_TYPES = frozenset({ValueType.NUMBER, ValueType.CURRENCY})


@dataclass(frozen=True)
class FieldDescriptor:
    """Definition of a reportable field."""

    table: str
    key: str
    label: str
    value_type: ValueType
    aggregatable: bool = False
    groupable: bool = False
    description: Optional[str] = None
    priority: Optional[int] = None  # 1 = most important


@dataclass(frozen=True)
class TableInfo:
    """A catalog table and its display label."""

    key: str
    label: str


class FieldCatalog:
    """Read-only registry of tables, fields and filter metadata."""

    def __init__(
        self,
        fields: Mapping[str, Sequence[FieldDescriptor]],
        table_labels: Optional[Mapping[str, str]] = None,
        date_columns: Optional[Mapping[str, str]] = None,
        entity_filters: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self._fields: Dict[str, tuple] = {table: tuple(descs) for table, descs in fields.items()}
        self._table_labels = dict(table_labels or {})
        self._date_columns = dict(date_columns or {})
        self._entity_filters: Dict[str, FrozenSet[str]] = {
            name: frozenset(tables) for name, tables in (entity_filters or {}).items()
        }

        for table, descs in self._fields.items():
            for desc in descs:
                if desc.table != table:
                    raise ValueError(
                        f"Field '{desc.key}' declares table '{desc.table}' but is registered under '{table}'"
                    )

    # ===== TABLES =====

    def get_tables(self) -> List[str]:
        """Get all table names in declaration order."""
        return list(self._fields.keys())

    def has_table(self, table: str) -> bool:
        return table in self._fields

    def get_table_label(self, table: str) -> str:
        return self._table_labels.get(table, table)

    def get_table_infos(self) -> List[TableInfo]:
        return [TableInfo(key=table, label=self.get_table_label(table)) for table in self._fields]

    # ===== FIELDS =====

    def get_fields(self, table: str) -> List[FieldDescriptor]:
        """Get the fields of a table in declaration order (empty for unknown tables)."""
        return list(self._fields.get(table, ()))

    def get_fields_by_priority(self, table: str) -> List[FieldDescriptor]:
        """Prioritized fields first (ascending), then the rest in declaration order."""
        fields = self.get_fields(table)
        prioritized = sorted((f for f in fields if f.priority is not None), key=lambda f: f.priority)
        return prioritized + [f for f in fields if f.priority is None]

    def get_field(self, table: str, key: str) -> Optional[FieldDescriptor]:
        for desc in self._fields.get(table, ()):
            if desc.key == key:
                return desc
        return None

    def search_fields(self, table: str, term: str) -> List[FieldDescriptor]:
        """Case-insensitive substring search over label and key."""
        fields = self.get_fields_by_priority(table)
        if not term:
            return fields
        needle = term.lower()
        return [f for f in fields if needle in f.label.lower() or needle in f.key.lower()]

    # ===== FILTER METADATA =====

    def date_column_for(self, table: str) -> str:
        return self._date_columns.get(table, DEFAULT_DATE_COLUMN)

    def entity_filter_names(self) -> List[str]:
        return list(self._entity_filters.keys())

    def supports_entity_filter(self, table: str, filter_name: str) -> bool:
        return table in self._entity_filters.get(filter_name, frozenset())


# ===== DEFAULT FINANCIAL CATALOG =====

T, N, C, D, B = ValueType.TEXT, ValueType.NUMBER, ValueType.CURRENCY, ValueType.DATE, ValueType.BOOLEAN


def _f(table: str, key: str, label: str, value_type: ValueType, **kwargs) -> FieldDescriptor:
    if value_type in NUMERIC_VALUE_TYPES:
        kwargs.setdefault("aggregatable", True)
    return FieldDescriptor(table=table, key=key, label=label, value_type=value_type, **kwargs)


FINANCIAL_FIELDS: Dict[str, List[FieldDescriptor]] = {
    "despesas": [
        _f("despesas", "numero_documento", "Número Documento", T, priority=1),
        _f("despesas", "data_despesa", "Data da Despesa", D, groupable=True),
        _f("despesas", "valor", "Valor da Despesa", C),
        _f("despesas", "categoria", "Categoria", T, groupable=True),
        _f("despesas", "status", "Status", T, groupable=True),
        _f("despesas", "fornecedor_cnpj", "CNPJ Fornecedor", T),
        _f("despesas", "descricao", "Descrição", T),
        _f("despesas", "created_at", "Data Criação", D, groupable=True),
    ],
    "despesas_variaveis": [
        _f("despesas_variaveis", "nr_documento", "Número Documento", T, priority=1),
        _f("despesas_variaveis", "data_compra", "Data da Compra", D, groupable=True),
        _f("despesas_variaveis", "data_lancamento", "Data de Lançamento", D, groupable=True),
        _f("despesas_variaveis", "valor_compra", "Valor da Compra", C),
        _f("despesas_variaveis", "nome_fornecedor", "Nome Fornecedor", T, groupable=True),
        _f("despesas_variaveis", "cnpj_fornecedor", "CNPJ Fornecedor", T),
        _f("despesas_variaveis", "forma_pagamento", "Forma de Pagamento", T, groupable=True),
        # Installment count is a count, not a measure
        _f("despesas_variaveis", "numero_parcelas", "Número de Parcelas", N, aggregatable=False),
        _f("despesas_variaveis", "status_ocr", "Status OCR", T, groupable=True),
        _f("despesas_variaveis", "descricao", "Descrição", T),
        _f("despesas_variaveis", "created_at", "Data Criação", D, groupable=True),
    ],
    "cartoes_credito": [
        _f("cartoes_credito", "numero_cartao_masked", "Número Cartão", T, priority=1),
        _f("cartoes_credito", "bandeira", "Bandeira", T, groupable=True),
        _f("cartoes_credito", "vencimento_mes", "Mês Vencimento", N, aggregatable=False),
        _f("cartoes_credito", "vencimento_ano", "Ano Vencimento", N, aggregatable=False),
        _f("cartoes_credito", "ativo", "Ativo", B, groupable=True),
        _f("cartoes_credito", "created_at", "Data Criação", D, groupable=True),
    ],
    "formas_pagamento": [
        _f("formas_pagamento", "codigo", "Código", T, priority=1),
        _f("formas_pagamento", "nome", "Nome", T, groupable=True),
        _f("formas_pagamento", "ativo", "Ativo", B, groupable=True),
        _f("formas_pagamento", "permite_parcelamento", "Permite Parcelamento", B, groupable=True),
        _f("formas_pagamento", "requer_cartao", "Requer Cartão", B, groupable=True),
    ],
    "categorias": [
        _f("categorias", "nome", "Nome", T, groupable=True, priority=1),
        _f("categorias", "tipo", "Tipo", T, groupable=True),
        _f("categorias", "descricao", "Descrição", T),
        _f("categorias", "ativa", "Ativa", B, groupable=True),
    ],
    "clientes": [
        _f("clientes", "documento", "Documento Cliente", T, priority=1),
        _f("clientes", "nome", "Nome do Cliente", T, groupable=True),
        _f("clientes", "tipo", "Tipo Cliente", T, groupable=True),
    ],
    "obras": [
        _f("obras", "nome", "Nome da Obra", T, groupable=True, priority=1),
        _f("obras", "status", "Status Obra", T, groupable=True),
        _f("obras", "progresso", "Progresso (%)", N, aggregatable=False),
        _f("obras", "orcamento", "Orçamento", C),
        _f("obras", "data_inicio", "Data Início", D, groupable=True),
        _f("obras", "data_fim", "Data Fim", D, groupable=True),
    ],
    "funcionarios": [
        _f("funcionarios", "nome", "Nome do Funcionário", T, groupable=True, priority=1),
        _f("funcionarios", "email", "Email", T),
        _f("funcionarios", "telefone", "Telefone", T),
        _f("funcionarios", "ativo", "Funcionário Ativo", B, groupable=True),
    ],
    "requisicoes": [
        _f("requisicoes", "titulo", "Título Requisição", T, groupable=True, priority=1),
        _f("requisicoes", "status", "Status Requisição", T, groupable=True),
        _f("requisicoes", "prioridade", "Prioridade", T, groupable=True),
        _f("requisicoes", "data_vencimento", "Data Vencimento", D, groupable=True),
    ],
}

TABLE_LABELS: Dict[str, str] = {
    "despesas": "Despesas por Requisição",
    "despesas_variaveis": "Despesas Variáveis",
    "cartoes_credito": "Cartões de Crédito",
    "formas_pagamento": "Formas de Pagamento",
    "categorias": "Categorias",
    "clientes": "Clientes",
    "obras": "Obras",
    "funcionarios": "Funcionários",
    "requisicoes": "Requisições",
}

# Tables missing here filter on created_at
DATE_COLUMNS: Dict[str, str] = {
    "despesas": "data_despesa",
    "despesas_variaveis": "data_compra",
    "obras": "data_inicio",
    "requisicoes": "data_vencimento",
}

# Entity filter -> tables that carry the matching foreign key column
ENTITY_FILTERS: Dict[str, List[str]] = {
    "cliente_id": ["despesas", "obras"],
    "obra_id": ["despesas", "despesas_variaveis", "requisicoes"],
}


def build_financial_catalog() -> FieldCatalog:
    """Build the catalog of the financial sector."""
    return FieldCatalog(
        fields=FINANCIAL_FIELDS,
        table_labels=TABLE_LABELS,
        date_columns=DATE_COLUMNS,
        entity_filters=ENTITY_FILTERS,
    )


@lru_cache(maxsize=1)
def get_catalog() -> FieldCatalog:
    """Application-wide catalog, loaded once."""
    return build_financial_catalog()
