import io

from openpyxl import load_workbook

from exports import NO_DATA_MESSAGE, report_to_pdf, report_to_xlsx


def test_xlsx_export_route(client, seeded):
    resp = client.get("/reports/custom.xlsx?sort=total&direction=desc")
    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    ws = load_workbook(io.BytesIO(resp.data)).active
    rows = [[c.value for c in row] for row in ws.iter_rows()]
    assert rows[0] == ["Student", "1-Reading", "2-Writing", "3-Listening", "Total"]
    assert rows[1] == ["Silva, Ana", 9, 8, 10, 27]
    assert rows[3] == ["Mendes, Carla", 4, "—", 3, 7]
    assert ws["E2"].number_format == "0.0"


def test_xlsx_colours_total_cell():
    dataset = {
        "headers": ["Student", "Total"],
        "rows": [
            {"cells": {"Student": "Silva, Ana", "Total": "27.0"}, "total": 27.0, "color": "#ca8a04"},
            {"cells": {"Student": "Costa, Bruno", "Total": "11.0"}, "total": 11.0, "color": "inherit"},
        ],
    }
    ws = load_workbook(report_to_xlsx(dataset)).active

    assert ws["B2"].font.color.rgb.endswith("CA8A04")
    assert ws["B3"].value == 11
    assert isinstance(ws["B3"].value, (int, float))


def test_xlsx_export_without_rows():
    ws = load_workbook(report_to_xlsx({"headers": ["Student", "Total"], "rows": []})).active
    assert ws["A2"].value == NO_DATA_MESSAGE


def test_pdf_export_route(client, seeded):
    resp = client.get("/reports/custom.pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data[:4] == b"%PDF"


def test_pdf_export_handles_empty_and_unknown_colours():
    empty = report_to_pdf({"headers": ["Student", "Total"], "rows": []})
    assert empty.read(4) == b"%PDF"

    odd_colour = {
        "headers": ["Student", "Total"],
        "rows": [{"cells": {"Student": "Silva, Ana", "Total": "27.0"}, "color": "not-a-colour"}],
    }
    assert report_to_pdf(odd_colour, filter_summary="Titles=1").read(4) == b"%PDF"


def test_export_rejects_bad_filters(client):
    assert client.get("/reports/custom.pdf?end_date=31/12/2025").status_code == 400
