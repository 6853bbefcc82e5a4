"""Export routes for the admin area (reservations Excel export)."""
import io

from flask import Response, request, redirect, url_for, flash, current_app
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from models.errors import PersistenceError
from models.services import get_services
from utils.datetime_helpers import get_today, to_iso
from utils.decorators import ADMIN_ACCESS_LEVEL, access_level_required, login_required
from utils.messages import MESSAGES

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADERS = [
    'ID', 'Laptop', 'Start', 'End', 'First name', 'Last name',
    'Email', 'Phone', 'Processed'
]


def register_routes(bp):
    """Register export routes on the admin blueprint."""

    @bp.route('/reservations-export')
    @login_required
    @access_level_required(ADMIN_ACCESS_LEVEL)
    def reservations_export():
        """Download reservations as an Excel workbook (?view=new for unprocessed only)."""
        new_only = request.args.get('view') == 'new'
        store = get_services().store
        try:
            reservations = store.new_reservations() if new_only else store.all_reservations()
        except PersistenceError as e:
            current_app.logger.error(f'Reservation export failed: {e}')
            flash(MESSAGES['store_unavailable'], 'error')
            return redirect(url_for('admin.dashboard'))

        workbook = build_reservations_workbook(reservations, new_only=new_only)

        output = io.BytesIO()
        workbook.save(output)
        output.seek(0)

        filename = f"reservations_{to_iso(get_today())}.xlsx"
        return Response(
            output.getvalue(),
            mimetype=XLSX_MIMETYPE,
            headers={'Content-Disposition': f'attachment; filename={filename}'}
        )


def build_reservations_workbook(reservations: list, new_only: bool = False) -> Workbook:
    """
    Lay out reservations on a styled worksheet.

    Row 1 is the title, row 2 a summary line, row 4 the headers and
    data starts on row 5.

    Args:
        reservations: Reservation dicts as returned by the store
        new_only: Whether the list holds only unprocessed reservations

    Returns:
        Workbook: Ready to save
    """
    wb = Workbook()
    ws = wb.active
    ws.title = 'Reservations'

    # Styles
    header_font = Font(bold=True, color='FFFFFF', size=11)
    header_fill = PatternFill(start_color='1A3A5C', end_color='1A3A5C', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin_side = Side(style='thin', color='D4D4D4')
    thin_border = Border(left=thin_side, right=thin_side, top=thin_side, bottom=thin_side)
    center_alignment = Alignment(horizontal='center', vertical='center')
    alt_fill = PatternFill(start_color='F5F5F5', end_color='F5F5F5', fill_type='solid')

    last_column = chr(ord('A') + len(HEADERS) - 1)

    # Title row
    ws.merge_cells(f'A1:{last_column}1')
    title_cell = ws.cell(row=1, column=1, value='Reservations - Laptop Rental')
    title_cell.font = Font(bold=True, size=14, color='1A3A5C')
    title_cell.alignment = center_alignment

    # Subtitle
    scope = 'New reservations' if new_only else 'All reservations'
    ws.merge_cells(f'A2:{last_column}2')
    subtitle_cell = ws.cell(row=2, column=1, value=f'{scope} | Total: {len(reservations)}')
    subtitle_cell.font = Font(size=10, color='666666')
    subtitle_cell.alignment = center_alignment

    header_row = 4
    for col, header in enumerate(HEADERS, 1):
        cell = ws.cell(row=header_row, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border

    ws.freeze_panes = f'A{header_row + 1}'

    for row_idx, reservation in enumerate(reservations, header_row + 1):
        values = [
            reservation['id'],
            reservation.get('laptop_name') or '-',
            to_iso(reservation['start_date']),
            to_iso(reservation['end_date']),
            reservation.get('first_name', ''),
            reservation.get('last_name', ''),
            reservation.get('email', ''),
            reservation.get('phone') or '-',
            'Yes' if reservation.get('processed') else 'No',
        ]
        is_alt = (row_idx - header_row) % 2 == 0
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row_idx, column=col, value=value)
            cell.border = thin_border
            if is_alt:
                cell.fill = alt_fill

        # ID, dates and status are centered
        for col in (1, 3, 4, 9):
            ws.cell(row=row_idx, column=col).alignment = center_alignment

    # Column widths from the longest value, skipping merged title cells
    for col_cells in ws.columns:
        anchor_cell = next((c for c in col_cells if not isinstance(c, MergedCell)), None)
        if anchor_cell is None:
            continue
        max_length = max(
            (len(str(c.value or '')) for c in col_cells
             if not isinstance(c, MergedCell) and c.row >= header_row),
            default=8
        )
        ws.column_dimensions[anchor_cell.column_letter].width = min(max(max_length, 8) + 3, 50)

    return wb
