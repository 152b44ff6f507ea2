from io import BytesIO
from typing import Iterable
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from utils.formatting import format_peso, to_money

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ITEM_HEADERS = ["No.", "Qty", "Unit", "Particulars", "Unit Cost", "Amount", "Remarks"]


def build_release_workbook(report) -> BytesIO:
    """Render one Supplies Release Order as a printable sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = report.sro_no or "Release Order"

    header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
    total_fill = PatternFill(start_color="FFFF00", end_color="FFFF00", fill_type="solid")
    bold_font = Font(bold=True)
    bold_font_white = Font(bold=True, color="FFFFFF")
    thin = Side(style="thin", color="000000")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws.append(["SUPPLIES RELEASE ORDER"])
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(ITEM_HEADERS))
    title_cell = ws.cell(row=1, column=1)
    title_cell.font = Font(bold=True, size=14)
    title_cell.alignment = Alignment(horizontal="center", vertical="center")

    created = report.created_at.strftime("%Y-%m-%d") if report.created_at else ""
    ws.append(["SRO No.", report.sro_no, "", "Date", created])
    ws.append(["RS No.", report.rs_no or "", "", "Partial Release", "Yes" if report.is_partial_release else "No"])
    ws.append(["Department/Office", report.department_office])
    ws.append([])
    for row in ws.iter_rows(min_row=2, max_row=4, max_col=4):
        for cell in row:
            if cell.column in (1, 4):
                cell.font = bold_font

    ws.append(ITEM_HEADERS)
    for cell in ws[ws.max_row]:
        cell.fill = header_fill
        cell.font = bold_font_white
        cell.alignment = Alignment(horizontal="center")
        cell.border = border

    for number, line in enumerate(report.items, start=1):
        ws.append([
            number,
            int(line["quantity"]),
            line.get("unit"),
            line.get("particulars"),
            format_peso(to_money(line.get("unit_cost"))),
            format_peso(to_money(line.get("amount"))),
            line.get("remarks") or "",
        ])
        for cell in ws[ws.max_row]:
            cell.border = border

    ws.append(["", "", "", "TOTAL", "", format_peso(report.total_amount), ""])
    for cell in ws[ws.max_row]:
        cell.fill = total_fill
        cell.font = bold_font
        cell.border = border

    ws.append([])
    ws.append(["Received by", report.received_by or ""])

    widths = [6, 8, 10, 40, 16, 16, 30]
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)
    return excel_file


def build_reports_summary(reports: Iterable) -> BytesIO:
    """One row per report, for the monthly listing."""
    rows = [
        {
            "SRO No.": report.sro_no,
            "RS No.": report.rs_no,
            "Department/Office": report.department_office,
            "Items": len(report.items),
            "Total Amount": float(report.total_amount),
            "Released By": report.released_by,
            "Received By": report.received_by,
            "Date": report.created_at.strftime("%Y-%m-%d %H:%M") if report.created_at else None,
        }
        for report in reports
    ]
    df = pd.DataFrame(rows, columns=[
        "SRO No.", "RS No.", "Department/Office", "Items", "Total Amount", "Released By", "Received By", "Date",
    ])

    excel_file = BytesIO()
    df.to_excel(excel_file, index=False, sheet_name="Released Orders")
    excel_file.seek(0)
    return excel_file


RECEIVING_HEADERS = ["No.", "Date Received", "Supplier", "Qty", "Unit", "Item", "Category", "Unit Cost", "Amount"]


def build_receiving_workbook(report) -> BytesIO:
    """Render a receiving report: one row per item taken into stock, then totals."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Receiving Report"

    header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
    total_fill = PatternFill(start_color="FFFF00", end_color="FFFF00", fill_type="solid")
    bold_font = Font(bold=True)
    thin = Side(style="thin", color="000000")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws.append(["RECEIVING REPORT"])
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(RECEIVING_HEADERS))
    title_cell = ws.cell(row=1, column=1)
    title_cell.font = Font(bold=True, size=14)
    title_cell.alignment = Alignment(horizontal="center", vertical="center")

    ws.append(["Report", report.name])
    ws.append(["Date Range", report.date_range])
    ws.append([])
    for row in ws.iter_rows(min_row=2, max_row=3, max_col=1):
        for cell in row:
            cell.font = bold_font

    ws.append(RECEIVING_HEADERS)
    for cell in ws[ws.max_row]:
        cell.fill = header_fill
        cell.font = Font(bold=True, color="FFFFFF")
        cell.alignment = Alignment(horizontal="center")
        cell.border = border

    for number, item in enumerate(report.data.get("items", []), start=1):
        received = item.get("date_received") or ""
        ws.append([
            number,
            received[:10],
            item.get("supplier"),
            int(item.get("quantity") or 0),
            item.get("unit_of_measure"),
            item.get("item_name"),
            item.get("category_name") or "",
            format_peso(to_money(item.get("unit_cost"))),
            format_peso(to_money(item.get("amount"))),
        ])
        for cell in ws[ws.max_row]:
            cell.border = border

    ws.append(["", "", "TOTAL", report.total_quantity, "", "", "", "", format_peso(report.total_amount)])
    for cell in ws[ws.max_row]:
        cell.fill = total_fill
        cell.font = bold_font
        cell.border = border

    widths = [6, 14, 24, 8, 10, 36, 18, 16, 16]
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)
    return excel_file
