# reporting.py
"""Report aggregation and conditional formatting.

Everything here works on rows that were already fetched and filtered: no
database access, no request state. Records, students, criteria and rules
are duck-typed, so SQLAlchemy model instances can be passed straight in.
"""
import logging
import math
import re
from dataclasses import dataclass, replace
from functools import partial, reduce
from numbers import Real
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

NO_DATA = "—"
INHERIT = "inherit"
SORT_KEYS = ("name", "total")
SORT_DIRECTIONS = ("asc", "desc")

STUDENT_HEADER = "Student"
TOTAL_HEADER = "Total"

_NAME_PREFIX = re.compile(r"^\s*([+-]?\d+)")


class ReportDataError(ValueError):
    """A record carries a value that cannot be summed into a total."""


@dataclass(frozen=True)
class PivotRow:
    student_id: object
    student_display_name: str
    per_criterion_value: Dict[str, object]
    total: float
    titles: FrozenSet[str] = frozenset()
    color: str = INHERIT


class _StudentScores(NamedTuple):
    values: Mapping[str, float]  # criterion name -> latest value
    titles: FrozenSet[str]


_EMPTY_SCORES = _StudentScores(values={}, titles=frozenset())


# ----- Pivot -----

def graded_value(record):
    """Return the record's value, or None when it is not graded yet.

    Zero and NULL both mean "not graded". Anything that is not a finite
    real number raises ReportDataError.
    """
    value = getattr(record, "value", None)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ReportDataError(
            f"value {value!r} for student {record.student_id} / criterion {record.criterion_id} is not numeric"
        )
    if not math.isfinite(value):
        raise ReportDataError(
            f"value {value!r} for student {record.student_id} / criterion {record.criterion_id} is not finite"
        )
    if value == 0:
        return None
    return value


def display_name(student) -> str:
    return f"{student.last_name}, {student.first_name}"


def _fold_record(title_lookup, state, item):
    student_id, criterion_name, value, title_id = item
    current = state.get(student_id, _EMPTY_SCORES)

    values = dict(current.values)
    values[criterion_name] = value  # last write wins

    titles = current.titles
    title = title_lookup.get(title_id) if title_id is not None else None
    if title:
        titles = titles | {title}

    return {**state, student_id: _StudentScores(values=values, titles=titles)}


def build_pivot(records, students, criteria, title_lookup: Optional[Mapping] = None) -> Tuple[List[PivotRow], list]:
    """Pivot evaluation records into one row per student.

    Returns ``(rows, visible_criteria)``. Only criteria and students with at
    least one graded record are kept; rows follow the order of ``students``
    and columns the order of ``criteria``.
    """
    title_lookup = title_lookup or {}
    criteria_by_id = {c.id: c for c in criteria}
    student_ids = {s.id for s in students}

    graded = []
    criteria_with_data = set()
    for record in records:
        value = graded_value(record)
        if value is None:
            continue
        criterion = criteria_by_id.get(record.criterion_id)
        if criterion is None or record.student_id not in student_ids:
            continue
        criteria_with_data.add(criterion.id)
        graded.append((record.student_id, criterion.name, value, getattr(record, "evaluation_title_id", None)))

    if not graded:
        logger.debug("build_pivot: no graded records")
        return [], []

    visible = [c for c in criteria if c.id in criteria_with_data]

    state = reduce(partial(_fold_record, title_lookup), graded, {})

    rows = []
    seen = set()
    for student in students:
        scores = state.get(student.id)
        if scores is None or student.id in seen:
            continue
        seen.add(student.id)
        per_criterion = {c.name: NO_DATA for c in visible}
        per_criterion.update(scores.values)
        rows.append(PivotRow(
            student_id=student.id,
            student_display_name=display_name(student),
            per_criterion_value=per_criterion,
            total=sum(scores.values.values()),
            titles=scores.titles,
        ))

    logger.debug("build_pivot: %d rows x %d criteria from %d graded records",
                 len(rows), len(visible), len(graded))
    return rows, visible


def sort_rows(rows, key="name", direction="asc"):
    if key not in SORT_KEYS:
        raise ValueError(f"unknown sort key {key!r}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"unknown sort direction {direction!r}")

    if key == "name":
        sort_key = lambda row: row.student_display_name.casefold()
    else:
        sort_key = lambda row: row.total
    return sorted(rows, key=sort_key, reverse=(direction == "desc"))


def criterion_order_key(criterion):
    # "3-Listening" -> 3; no numeric prefix -> 0
    m = _NAME_PREFIX.match(criterion.name or "")
    return int(m.group(1)) if m else 0


def order_criteria(criteria):
    return sorted(criteria, key=criterion_order_key)


# ----- Conditional formatting -----

def rule_priority(rule):
    """Sort key for competing rules: title-specific first, then the narrower band."""
    is_global = rule.evaluation_title_id is None
    return (1 if is_global else 0, rule.max_score - rule.min_score)


def rule_applies(rule, total, applicable_titles, title_lookup) -> bool:
    if not (rule.min_score <= total <= rule.max_score):
        return False
    if rule.evaluation_title_id is None:
        return True
    return title_lookup.get(rule.evaluation_title_id) in applicable_titles


def resolve_color(total, applicable_titles, rules, title_lookup, default=INHERIT):
    if not applicable_titles:
        return default
    matching = [r for r in rules if rule_applies(r, total, applicable_titles, title_lookup)]
    if not matching:
        return default
    # min() keeps the first of equal-priority rules
    return min(matching, key=rule_priority).color


def annotate_rows(rows, rules, title_lookup, selected_title_ids=None, default=INHERIT):
    """Attach the resolved colour to each row.

    An explicitly empty title selection leaves every row uncoloured.
    """
    rules = list(rules)
    if selected_title_ids is not None and not selected_title_ids:
        return [replace(row, color=default) for row in rows]
    return [
        replace(row, color=resolve_color(row.total, row.titles, rules, title_lookup, default=default))
        for row in rows
    ]


# ----- Display -----

def format_score(value, placeholder=NO_DATA):
    if value is None or isinstance(value, str):
        return placeholder
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_total(total, decimals=1):
    return f"{total:.{decimals}f}"


def report_table(rows, visible_criteria, decimals=1, placeholder=NO_DATA):
    """Flatten pivot rows into headers plus display cells for rendering and export."""
    names = [c.name for c in visible_criteria]
    headers = [STUDENT_HEADER, *names, TOTAL_HEADER]

    table_rows = []
    for row in rows:
        cells = {STUDENT_HEADER: row.student_display_name}
        for name in names:
            cells[name] = format_score(row.per_criterion_value.get(name), placeholder)
        cells[TOTAL_HEADER] = format_total(row.total, decimals)
        table_rows.append({
            "student_id": row.student_id,
            "cells": cells,
            "values": {name: row.per_criterion_value[name] for name in names if name in row.per_criterion_value},
            "total": row.total,
            "titles": sorted(row.titles),
            "color": row.color,
        })
    return {"headers": headers, "rows": table_rows}


# ----- Standard report -----

def _average_series(buckets):
    labels = list(buckets)
    averages = [sum(v) / len(v) for v in buckets.values()]
    return {
        "labels": labels,
        "averages": [round(a, 1) for a in averages],
        "chart_max": min(100, math.ceil(max(averages, default=0) * 1.1)),
    }


def summarize_performance(records, students, criteria, classes, threshold=60.0, limit=5):
    """Class and criterion averages (as % of each criterion's max) plus the lowest totals."""
    criteria_by_id = {c.id: c for c in criteria}
    class_names = {k.id: k.name for k in classes}

    by_class: Dict[str, List[float]] = {}
    by_criterion: Dict[str, List[float]] = {}
    for record in records:
        value = graded_value(record)
        criterion = criteria_by_id.get(record.criterion_id)
        if value is None or criterion is None or not criterion.max_value or criterion.max_value <= 0:
            continue
        pct = value / criterion.max_value * 100.0
        by_class.setdefault(class_names.get(record.class_id, "No class"), []).append(pct)
        by_criterion.setdefault(criterion.name, []).append(pct)

    rows, _ = build_pivot(records, students, criteria)
    class_of = {s.id: class_names.get(getattr(s, "class_id", None), "") for s in students}
    low = sorted((r for r in rows if r.total < threshold), key=lambda r: r.total)[:limit]

    return {
        "by_class": _average_series(by_class),
        "by_criterion": _average_series(by_criterion),
        "low_performance": [
            {"student_id": r.student_id, "name": r.student_display_name,
             "class": class_of.get(r.student_id, ""), "total": r.total}
            for r in low
        ],
    }
