"""Column descriptors and value formatting for report rendering."""

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Sequence

from app.bi.aggregation import to_number
from app.bi.catalog import ValueType
from app.bi.schemas import ColumnDescriptor, FormatterKind, SelectedField

PLACEHOLDER = "-"
BOOLEAN_LABELS = ("Sim", "Não")

FORMATTER_BY_VALUE_TYPE: Dict[ValueType, FormatterKind] = {
    ValueType.CURRENCY: FormatterKind.CURRENCY,
    ValueType.DATE: FormatterKind.DATE,
    ValueType.BOOLEAN: FormatterKind.BOOLEAN,
    ValueType.NUMBER: FormatterKind.NUMBER,
    ValueType.TEXT: FormatterKind.TEXT,
}


def build_columns(fields: Sequence[SelectedField]) -> List[ColumnDescriptor]:
    """One column per selected field, in selection order."""
    return [
        ColumnDescriptor(
            key=selected.field,
            title=selected.title,
            value_type=selected.value_type,
            formatter=FORMATTER_BY_VALUE_TYPE[selected.value_type],
        )
        for selected in fields
    ]


# ===== FORMATTERS (pt-BR) =====


def _swap_separators(text: str) -> str:
    """Turn en-US grouping (1,234.5) into pt-BR grouping (1.234,5)."""
    return text.replace(",", "X").replace(".", ",").replace("X", ".")


def format_currency(value: Any) -> str:
    amount = to_number(value)
    text = "R$ " + _swap_separators(f"{abs(amount):,.2f}")
    return f"-{text}" if amount < 0 else text


def format_number(value: Any) -> str:
    text = f"{to_number(value):,.3f}".rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return _swap_separators(text)


def format_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return str(value)


def format_boolean(value: Any) -> str:
    return BOOLEAN_LABELS[0] if value else BOOLEAN_LABELS[1]


def format_text(value: Any) -> str:
    return str(value)


FORMATTERS: Dict[FormatterKind, Callable[[Any], str]] = {
    FormatterKind.CURRENCY: format_currency,
    FormatterKind.DATE: format_date,
    FormatterKind.BOOLEAN: format_boolean,
    FormatterKind.NUMBER: format_number,
    FormatterKind.TEXT: format_text,
}


def format_value(value: Any, formatter: FormatterKind) -> str:
    """Format a single cell; missing values render as a dash."""
    if value is None:
        return PLACEHOLDER
    return FORMATTERS[formatter](value)


def format_row(row: Dict[str, Any], columns: Sequence[ColumnDescriptor]) -> List[str]:
    """Formatted cells of one display row, in column order."""
    return [format_value(row.get(column.key), column.formatter) for column in columns]
