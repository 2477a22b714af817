# exports.py
import io
import re
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from reporting import STUDENT_HEADER, TOTAL_HEADER, INHERIT

NO_DATA_MESSAGE = "No data for the selected filters"
HEX_COLOR = re.compile(r"#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})")


def _table_rows(dataset):
    headers = dataset.get("headers", [])
    return [[row["cells"].get(h, "") for h in headers] for row in dataset.get("rows", [])]


def _sheet_values(row, headers):
    # numbers go in as numbers so the sheet can sum them; gaps keep the placeholder text
    values = row.get("values", {})
    out = []
    for h in headers:
        if h == TOTAL_HEADER and row.get("total") is not None:
            out.append(row["total"])
        elif h in values:
            out.append(values[h])
        else:
            out.append(row["cells"].get(h, ""))
    return out


def _hex_or_none(color):
    # openpyxl only takes RGB hex; CSS keywords stay uncoloured in the sheet
    m = HEX_COLOR.fullmatch((color or "").strip())
    if not m:
        return None
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return digits.upper()


def _pdf_color(color):
    if not color or color == INHERIT:
        return None
    rgb = _hex_or_none(color)
    if rgb:
        return colors.HexColor("#" + rgb)
    return colors.getAllNamedColors().get(color.strip().lower())


def report_to_xlsx(dataset, title="Report"):
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    headers = dataset.get("headers", [])
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill("solid", fgColor="F3F4F6")

    rows = dataset.get("rows", [])
    if not rows:
        ws.append([NO_DATA_MESSAGE])
    for row in rows:
        ws.append(_sheet_values(row, headers))
        total_cell = ws.cell(row=ws.max_row, column=len(headers))
        total_cell.number_format = "0.0"
        rgb = _hex_or_none(row.get("color"))
        if rgb:
            total_cell.font = Font(bold=True, color=rgb)

    ws.freeze_panes = "A2"
    for idx, h in enumerate(headers, start=1):
        width = 14
        if h == STUDENT_HEADER:
            width = 28
        elif h == TOTAL_HEADER:
            width = 10
        ws.column_dimensions[get_column_letter(idx)].width = width

    out = io.BytesIO()
    wb.save(out)
    out.seek(0)
    return out


def report_to_pdf(dataset, title="Report", filter_summary=""):
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), leftMargin=10 * mm, rightMargin=10 * mm, topMargin=10 * mm, bottomMargin=10 * mm)
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(title, styles["Heading2"]),
        Paragraph(f"Date: {datetime.utcnow().strftime('%Y-%m-%d')}", styles["Normal"]),
    ]
    if filter_summary:
        elements.append(Paragraph(f"Filters: {filter_summary}", styles["Normal"]))
    elements.append(Spacer(1, 8))

    headers = dataset.get("headers", [])
    table_data = [headers] + _table_rows(dataset)
    if len(table_data) == 1:
        table_data.append([NO_DATA_MESSAGE] + [""] * (len(headers) - 1))

    widths = []
    for h in headers:
        if h == STUDENT_HEADER:
            widths.append(55 * mm)
        else:
            widths.append(22 * mm)

    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#d1d5db")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for i, row in enumerate(dataset.get("rows", []), start=1):
        text_color = _pdf_color(row.get("color"))
        if text_color is None:
            continue
        style.append(("TEXTCOLOR", (-1, i), (-1, i), text_color))
        style.append(("FONTNAME", (-1, i), (-1, i), "Helvetica-Bold"))

    table = Table(table_data, repeatRows=1, colWidths=widths or None)
    table.setStyle(TableStyle(style))
    elements.append(table)
    doc.build(elements)
    buffer.seek(0)
    return buffer
