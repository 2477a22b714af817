import math
from types import SimpleNamespace

import pytest

from reporting import (
    NO_DATA, ReportDataError, build_pivot, sort_rows, order_criteria,
    report_table, summarize_performance, display_name,
)

TITLES = {1: "Exam", 2: "Quiz 1"}


def student(id, first, last, class_id=1):
    return SimpleNamespace(id=id, first_name=first, last_name=last, class_id=class_id)


def criterion(id, name, max_value=10):
    return SimpleNamespace(id=id, name=name, min_value=0, max_value=max_value)


def record(student_id, criterion_id, value, title_id=1, class_id=1):
    return SimpleNamespace(
        student_id=student_id, criterion_id=criterion_id, class_id=class_id,
        evaluation_title_id=title_id, date=None, value=value, comments=None,
    )


S1 = student(1, "Ana", "Silva")
S2 = student(2, "Bruno", "Costa")
S3 = student(3, "Carla", "Mendes")
C1 = criterion(10, "C1")
C2 = criterion(20, "C2")
C3 = criterion(30, "C3")


def test_end_to_end_scenario():
    records = [record(1, 10, 8), record(1, 20, 0), record(2, 10, None)]
    rows, visible = build_pivot(records, [S1, S2], [C1, C2], TITLES)

    assert visible == [C1]
    assert len(rows) == 1
    assert rows[0].student_id == 1
    assert rows[0].total == 8.0
    assert rows[0].per_criterion_value == {"C1": 8}
    assert rows[0].titles == frozenset({"Exam"})


def test_empty_records_give_empty_pivot():
    assert build_pivot([], [S1, S2], [C1, C2]) == ([], [])


def test_total_uses_last_value_per_criterion():
    records = [record(1, 10, 5), record(1, 20, 3), record(1, 10, 7)]
    rows, _ = build_pivot(records, [S1], [C1, C2], TITLES)

    assert rows[0].per_criterion_value == {"C1": 7, "C2": 3}
    assert rows[0].total == 10


def test_total_matches_populated_cells():
    records = [
        record(1, 10, 2.5), record(1, 30, 4), record(2, 20, 6),
        record(2, 20, 1), record(3, 10, 9), record(3, 20, 0.5),
    ]
    rows, visible = build_pivot(records, [S1, S2, S3], [C1, C2, C3], TITLES)

    for row in rows:
        populated = [v for v in row.per_criterion_value.values() if v != NO_DATA]
        assert math.isclose(row.total, sum(populated))
    assert [c.name for c in visible] == ["C1", "C2", "C3"]


def test_criteria_without_graded_records_are_dropped():
    records = [record(1, 10, 4), record(2, 30, 0), record(2, 10, 3)]
    rows, visible = build_pivot(records, [S1, S2], [C1, C2, C3], TITLES)

    assert visible == [C1]
    assert all(set(r.per_criterion_value) == {"C1"} for r in rows)


def test_students_without_graded_records_are_dropped():
    records = [record(1, 10, 4), record(2, 10, 0), record(2, 20, None)]
    rows, _ = build_pivot(records, [S1, S2, S3], [C1, C2], TITLES)

    assert [r.student_id for r in rows] == [1]


def test_missing_cells_show_placeholder():
    records = [record(1, 10, 4), record(2, 20, 6)]
    rows, _ = build_pivot(records, [S1, S2], [C1, C2], TITLES)

    by_id = {r.student_id: r for r in rows}
    assert by_id[1].per_criterion_value == {"C1": 4, "C2": NO_DATA}
    assert by_id[2].per_criterion_value == {"C1": NO_DATA, "C2": 6}


def test_rows_follow_student_order_and_collect_titles():
    records = [record(2, 10, 1, title_id=2), record(1, 10, 2, title_id=None), record(2, 20, 1, title_id=1)]
    rows, _ = build_pivot(records, [S2, S1], [C1, C2], TITLES)

    assert [r.student_id for r in rows] == [2, 1]
    assert rows[0].titles == frozenset({"Exam", "Quiz 1"})
    assert rows[1].titles == frozenset()


def test_records_outside_requested_universe_are_ignored():
    records = [record(1, 10, 4), record(99, 10, 5), record(1, 99, 5)]
    rows, visible = build_pivot(records, [S1], [C1], TITLES)

    assert [r.student_id for r in rows] == [1]
    assert rows[0].total == 4
    assert visible == [C1]


def test_display_name_is_last_comma_first():
    assert display_name(S1) == "Silva, Ana"
    rows, _ = build_pivot([record(1, 10, 1)], [S1], [C1])
    assert rows[0].student_display_name == "Silva, Ana"


@pytest.mark.parametrize("bad", ["8", True, float("nan"), float("inf")])
def test_non_numeric_values_fail_loudly(bad):
    with pytest.raises(ReportDataError):
        build_pivot([record(1, 10, bad)], [S1], [C1])


def test_sort_by_total_desc_reverses_asc():
    records = [record(1, 10, 3), record(2, 10, 9), record(3, 10, 5)]
    rows, _ = build_pivot(records, [S1, S2, S3], [C1])

    asc = sort_rows(rows, "total", "asc")
    desc = sort_rows(rows, "total", "desc")
    assert [r.student_id for r in asc] == [1, 3, 2]
    assert [r.student_id for r in desc] == [r.student_id for r in reversed(asc)]


def test_sort_by_name():
    records = [record(1, 10, 3), record(2, 10, 9), record(3, 10, 5)]
    rows, _ = build_pivot(records, [S1, S2, S3], [C1])

    assert [r.student_display_name for r in sort_rows(rows, "name")] == [
        "Costa, Bruno", "Mendes, Carla", "Silva, Ana",
    ]
    assert [r.student_id for r in sort_rows(rows, "name", "desc")] == [1, 3, 2]


def test_sort_rejects_unknown_key():
    with pytest.raises(ValueError):
        sort_rows([], "average")


def test_order_criteria_by_numeric_prefix():
    criteria = [criterion(1, "10-Oral"), criterion(2, "2-Writing"), criterion(3, "Behaviour"), criterion(4, "1-Reading")]
    assert [c.name for c in order_criteria(criteria)] == ["Behaviour", "1-Reading", "2-Writing", "10-Oral"]


def test_report_table_formats_cells_and_totals():
    records = [record(1, 10, 8), record(1, 20, 2.5), record(2, 10, 4)]
    rows, visible = build_pivot(records, [S1, S2], [C1, C2], TITLES)
    table = report_table(rows, visible)

    assert table["headers"] == ["Student", "C1", "C2", "Total"]
    first, second = table["rows"]
    assert first["cells"] == {"Student": "Silva, Ana", "C1": "8", "C2": "2.5", "Total": "10.5"}
    assert second["cells"] == {"Student": "Costa, Bruno", "C1": "4", "C2": NO_DATA, "Total": "4.0"}
    assert second["values"] == {"C1": 4}
    assert first["color"] == "inherit"
    assert first["titles"] == ["Exam"]


def test_summarize_performance():
    classes = [SimpleNamespace(id=1, name="7A"), SimpleNamespace(id=2, name="7B")]
    s4 = student(4, "Duda", "Alves", class_id=2)
    records = [
        record(1, 10, 8), record(1, 20, 7),
        record(4, 10, 4, class_id=2), record(4, 20, 0, class_id=2),
    ]
    summary = summarize_performance(records, [S1, s4], [C1, C2], classes, threshold=10, limit=5)

    assert summary["by_class"]["labels"] == ["7A", "7B"]
    assert summary["by_class"]["averages"] == [75.0, 40.0]
    assert summary["by_class"]["chart_max"] == 83
    assert summary["by_criterion"]["labels"] == ["C1", "C2"]
    assert summary["by_criterion"]["averages"] == [60.0, 70.0]
    assert summary["low_performance"] == [
        {"student_id": 4, "name": "Alves, Duda", "class": "7B", "total": 4},
    ]


def test_summarize_performance_limits_low_performers():
    students = [student(i, f"F{i}", f"L{i}") for i in range(1, 9)]
    records = [record(i, 10, i) for i in range(1, 9)]
    summary = summarize_performance(records, students, [C1], [], threshold=60, limit=5)

    assert [p["total"] for p in summary["low_performance"]] == [1, 2, 3, 4, 5]
    assert summary["by_class"]["labels"] == ["No class"]


def test_summarize_performance_empty():
    summary = summarize_performance([], [S1], [C1], [])
    assert summary["by_class"] == {"labels": [], "averages": [], "chart_max": 0}
    assert summary["low_performance"] == []
