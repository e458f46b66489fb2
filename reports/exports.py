"""
File exports for ledger listings.

Formats: Excel (.xlsx, openpyxl), CSV (.csv) and fixed-width text (.txt).
Columns are described as dicts: {'key', 'header', 'width'?, 'numeric'?}.
Amount cells carry Money values so each format renders cents its own way.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from accounting.ledger import type_label


class ExportFormat:
    EXCEL = 'xlsx'
    CSV = 'csv'
    TXT = 'txt'

    CHOICES = [EXCEL, CSV, TXT]
    CONTENT_TYPES = {
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
        TXT: 'text/plain',
    }


class Money(int):
    """Integer cents that export as units with two decimals."""

    def as_decimal(self) -> Decimal:
        return Decimal(int(self)) / 100


def format_value(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, Money):
        sign = '-' if value < 0 else ''
        units, cents = divmod(abs(int(value)), 100)
        return f"{sign}{units}.{cents:02d}"
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# =============================================================================
# Excel
# =============================================================================

_HEADER_FONT = Font(bold=True, color='FFFFFF')
_HEADER_FILL = PatternFill(start_color='1F4E78', end_color='1F4E78', fill_type='solid')
_THIN = Side(style='thin', color='BFBFBF')
_CELL_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_FIRST_DATA_ROW = 4


def _excel_value(value, numeric: bool):
    if numeric and isinstance(value, Money):
        return value.as_decimal()
    if numeric and isinstance(value, Decimal):
        return value
    return format_value(value)


def export_to_excel(
    data: list[dict],
    columns: list[dict],
    title: str = 'Export',
    sheet_name: str = 'Journal',
) -> bytes:
    """
    Workbook with a title line, an export stamp, a styled header on row 3
    and one row per item. Numeric columns hold real numbers so the sheet
    can sum them.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    last_col = get_column_letter(len(columns))

    ws['A1'] = title
    ws['A1'].font = Font(bold=True, size=14)
    ws.merge_cells(f'A1:{last_col}1')
    ws['A2'] = f"Exported {datetime.now():%Y-%m-%d %H:%M}"
    ws['A2'].font = Font(italic=True, size=9, color='808080')
    ws.merge_cells(f'A2:{last_col}2')

    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=_FIRST_DATA_ROW - 1, column=col_idx, value=col['header'])
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.border = _CELL_BORDER
        cell.alignment = Alignment(horizontal='center', vertical='center')
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    for row_idx, row_data in enumerate(data, _FIRST_DATA_ROW):
        for col_idx, col in enumerate(columns, 1):
            numeric = col.get('numeric', False)
            cell = ws.cell(row=row_idx, column=col_idx, value=_excel_value(row_data.get(col['key']), numeric))
            cell.border = _CELL_BORDER
            if numeric:
                cell.number_format = '#,##0.00'
                cell.alignment = Alignment(horizontal='right')

    ws.freeze_panes = f'A{_FIRST_DATA_ROW}'
    if data:
        ws.auto_filter.ref = f'A{_FIRST_DATA_ROW - 1}:{last_col}{_FIRST_DATA_ROW - 1 + len(data)}'

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


# =============================================================================
# CSV and Text
# =============================================================================

def export_to_csv(
    data: list[dict],
    columns: list[dict],
    delimiter: str = ',',
) -> str:
    """CSV string with a header row."""
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)

    writer.writerow([col['header'] for col in columns])
    for row_data in data:
        writer.writerow([format_value(row_data.get(col['key'])) for col in columns])

    return output.getvalue()


def _fit(value: str, width: int, right: bool) -> str:
    if len(value) > width:
        value = value[:width - 3] + '...'
    return value.rjust(width) if right else value.ljust(width)


def export_to_txt(
    data: list[dict],
    columns: list[dict],
    separator: str = '  ',
    max_width: int = 50,
) -> str:
    """
    Fixed-width text table. Columns grow to fit their longest value up to
    max_width; longer values are cut with '...'.
    """
    rendered = [[format_value(row.get(col['key'])) for col in columns] for row in data]
    widths = [
        min(max([col.get('width', len(col['header']))] + [len(r[idx]) for r in rendered]), max_width)
        for idx, col in enumerate(columns)
    ]

    lines = [
        separator.join(_fit(col['header'], widths[idx], False) for idx, col in enumerate(columns)).rstrip(),
        separator.join('-' * w for w in widths),
    ]
    for values in rendered:
        lines.append(separator.join(
            _fit(value, widths[idx], columns[idx].get('numeric', False)) for idx, value in enumerate(values)
        ).rstrip())

    return '\n'.join(lines) + '\n'


def create_export_response(
    data: list[dict],
    columns: list[dict],
    format: str,
    filename: str,
    title: str = 'Export',
) -> HttpResponse:
    """
    Create an HTTP response with the exported file.

    Raises:
        ValueError: format is not one of ExportFormat.CHOICES
    """
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    content_type = ExportFormat.CONTENT_TYPES[format]
    full_filename = f"{filename}.{format}"

    if format == ExportFormat.EXCEL:
        response = HttpResponse(export_to_excel(data, columns, title=title), content_type=content_type)
    elif format == ExportFormat.CSV:
        response = HttpResponse(export_to_csv(data, columns), content_type=content_type)
        response.charset = 'utf-8-sig'  # BOM for Excel compatibility
    else:
        response = HttpResponse(export_to_txt(data, columns), content_type=content_type)

    response['Content-Disposition'] = f'attachment; filename="{full_filename}"'
    return response


# =============================================================================
# Journal Export Configuration
# =============================================================================

JOURNAL_EXPORT_COLUMNS = [
    {'key': 'transaction_number', 'header': 'Number', 'width': 16},
    {'key': 'date', 'header': 'Date', 'width': 12},
    {'key': 'type', 'header': 'Type', 'width': 18},
    {'key': 'description', 'header': 'Description', 'width': 35},
    {'key': 'source_account', 'header': 'From Account', 'width': 22},
    {'key': 'destination_account', 'header': 'To Account', 'width': 22},
    {'key': 'counterparty', 'header': 'Counterparty', 'width': 22},
    {'key': 'incoming', 'header': 'In', 'width': 14, 'numeric': True},
    {'key': 'outgoing', 'header': 'Out', 'width': 14, 'numeric': True},
    {'key': 'currency', 'header': 'Currency', 'width': 8},
    {'key': 'exchange_rate', 'header': 'Rate', 'width': 12, 'numeric': True},
    {'key': 'fx_fees', 'header': 'FX Fees', 'width': 12, 'numeric': True},
    {'key': 'created_by', 'header': 'Created By', 'width': 25},
]


def prepare_journal_export_data(transactions) -> list[dict]:
    """One row per ledger row; the amount lands in the In or Out column."""
    data = []
    for txn in transactions:
        person = txn.student or txn.mentor or txn.professor
        data.append({
            'transaction_number': txn.transaction_number,
            'date': txn.date,
            'type': type_label(txn.type),
            'description': txn.description,
            'source_account': txn.source_account.account_name if txn.source_account else '',
            'destination_account': txn.destination_account.account_name if txn.destination_account else '',
            'counterparty': person.display_name if person else '',
            'incoming': Money(txn.amount) if txn.destination_account_id else None,
            'outgoing': Money(txn.amount) if txn.source_account_id else None,
            'currency': txn.currency,
            'exchange_rate': txn.exchange_rate,
            'fx_fees': Money(txn.fx_fees) if txn.fx_fees else None,
            'created_by': txn.created_by.email if txn.created_by else '',
        })
    return data
