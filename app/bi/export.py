"""CSV and Excel renderers for report results."""

import csv
import io
import re
import unicodedata
from datetime import datetime
from typing import List, Optional

import pandas as pd

from app.bi.columns import format_row, format_value
from app.bi.schemas import FilterSet, ReportDefinition, ReportResult

CSV_SEPARATOR = ";"
TOTAL_LABEL = "TOTAL"


def export_filename(report_name: str, extension: str, now: Optional[datetime] = None) -> str:
    """``relatorio_de_despesas_2024-01-31.csv`` style file name."""
    normalized = unicodedata.normalize("NFKD", report_name).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", normalized).strip("_").lower() or "relatorio"
    stamp = (now or datetime.now()).strftime("%Y-%m-%d")
    return f"{slug}_{stamp}.{extension}"


def to_csv(result: ReportResult) -> str:
    """Header of column titles, one line per row, every cell quoted."""
    df = to_dataframe(result, include_totals=False)
    return df.to_csv(sep=CSV_SEPARATOR, index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def _totals_row(result: ReportResult) -> List[str]:
    cells = []
    labelled = False
    for column in result.columns:
        if column.key in result.aggregates:
            cells.append(format_value(result.aggregates[column.key], column.formatter))
        elif not labelled:
            # Label goes in the first column without a total
            cells.append(TOTAL_LABEL)
            labelled = True
        else:
            cells.append("")
    return cells


def to_dataframe(result: ReportResult, include_totals: bool = True) -> pd.DataFrame:
    titles = [column.title for column in result.columns]
    data = [format_row(row, result.columns) for row in result.rows]
    if include_totals and result.aggregates:
        data.append(_totals_row(result))
    # Duplicate titles are allowed in a report but not as DataFrame labels
    df = pd.DataFrame(data, columns=range(len(titles)))
    df.columns = titles
    return df


def to_xlsx(
    result: ReportResult,
    definition: ReportDefinition,
    filters: Optional[FilterSet] = None,
) -> bytes:
    """Render the report as an .xlsx workbook with a totals row."""
    df = to_dataframe(result)
    filters = filters or result.metadata.filters

    excel_buffer = io.BytesIO()
    with pd.ExcelWriter(excel_buffer, engine="openpyxl") as writer:
        sheet_name = re.sub(r"[\\/*?:\[\]]", "_", definition.name or "Relatorio")[:31]
        # Leave room for the title and period lines above the table
        df.to_excel(writer, sheet_name=sheet_name, index=False, startrow=3)
        worksheet = writer.sheets[sheet_name]
        worksheet.cell(row=1, column=1, value=definition.name)
        worksheet.cell(row=2, column=1, value=_period_label(filters))
        _apply_excel_formatting(worksheet, df, header_row=4, has_totals=bool(result.aggregates))

    return excel_buffer.getvalue()


def _period_label(filters: FilterSet) -> str:
    if not filters.has_date_range():
        return "Período: -"
    return (
        f"Período: {filters.date_start.strftime('%d/%m/%Y')} a "
        f"{filters.date_end.strftime('%d/%m/%Y')}"
    )


def _apply_excel_formatting(worksheet, df: pd.DataFrame, header_row: int, has_totals: bool):
    """Bold title, styled header, bold totals row, sized columns."""
    from openpyxl.styles import Alignment, Font, PatternFill

    worksheet.cell(row=1, column=1).font = Font(bold=True, size=14)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")

    for col_num in range(1, len(df.columns) + 1):
        cell = worksheet.cell(row=header_row, column=col_num)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment

    if has_totals and len(df) > 0:
        totals_row = header_row + len(df)
        for col_num in range(1, len(df.columns) + 1):
            worksheet.cell(row=totals_row, column=col_num).font = Font(bold=True)

    _auto_adjust_columns(worksheet)


def _auto_adjust_columns(worksheet):
    for column in worksheet.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)
