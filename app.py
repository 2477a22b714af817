# app.py
from flask import Flask, request, jsonify, abort, send_file
from flask_migrate import Migrate
from werkzeug.datastructures import ImmutableMultiDict
from config import Config
from models import (
    db, SchoolClass, Student, Criterion, EvaluationTitle, Evaluation, FormattingRule
)
from forms import FormattingRuleForm
from reporting import (
    ReportDataError, SORT_KEYS, SORT_DIRECTIONS,
    build_pivot, sort_rows, order_criteria, annotate_rows, report_table, summarize_performance,
)
from exports import report_to_xlsx, report_to_pdf
import logging
from datetime import date


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # ---- DB setup
    db.init_app(app)
    Migrate(app, db)

    # ---- Helpers
    def parse_id_csv(value, label):
        if not value:
            return []
        out = []
        for part in str(value).split(","):
            part = part.strip()
            if not part:
                continue
            try:
                out.append(int(part))
            except ValueError:
                raise ValueError(f"{label} must be comma-separated ids")
        return sorted(set(out))

    def parse_date(raw, label):
        if raw in (None, ""):
            return None
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            raise ValueError(f"{label} must be a date (yyyy-mm-dd)")

    def parse_report_filters(args):
        start_date = parse_date(args.get("start_date"), "start_date")
        end_date = parse_date(args.get("end_date"), "end_date")
        if start_date and end_date and start_date > end_date:
            raise ValueError("start_date must not be after end_date")

        sort_key = (args.get("sort") or "name").strip().lower()
        if sort_key not in SORT_KEYS:
            sort_key = "name"
        direction = (args.get("direction") or "asc").strip().lower()
        if direction not in SORT_DIRECTIONS:
            direction = "asc"

        # "title_ids" present but blank means "no title selected", not "all titles"
        title_ids = parse_id_csv(args.get("title_ids"), "title_ids")
        titles_given = "title_ids" in args

        return {
            "class_ids": parse_id_csv(args.get("class_ids"), "class_ids"),
            "student_ids": parse_id_csv(args.get("student_ids"), "student_ids"),
            "criterion_ids": parse_id_csv(args.get("criterion_ids"), "criterion_ids"),
            "title_ids": title_ids if titles_given else None,
            "start_date": start_date,
            "end_date": end_date,
            "sort": sort_key,
            "direction": direction,
        }

    def title_lookup():
        return {t.id: t.title for t in EvaluationTitle.query.all()}

    def fetch_report_inputs(filters):
        """Run the filtered queries; graded-ness and pivoting happen in reporting."""
        student_q = Student.query
        if filters["class_ids"]:
            student_q = student_q.filter(Student.class_id.in_(filters["class_ids"]))
        if filters["student_ids"]:
            student_q = student_q.filter(Student.id.in_(filters["student_ids"]))
        students = student_q.order_by(Student.last_name, Student.first_name, Student.id).all()

        criteria_q = Criterion.query
        if filters["criterion_ids"]:
            criteria_q = criteria_q.filter(Criterion.id.in_(filters["criterion_ids"]))
        criteria = order_criteria(criteria_q.order_by(Criterion.name).all())

        record_q = Evaluation.query.filter(
            Evaluation.value.isnot(None),
            Evaluation.value != 0,
        )
        if filters["class_ids"]:
            record_q = record_q.filter(Evaluation.class_id.in_(filters["class_ids"]))
        if filters["student_ids"]:
            record_q = record_q.filter(Evaluation.student_id.in_(filters["student_ids"]))
        if filters["criterion_ids"]:
            record_q = record_q.filter(Evaluation.criterion_id.in_(filters["criterion_ids"]))
        if filters["title_ids"]:
            record_q = record_q.filter(Evaluation.evaluation_title_id.in_(filters["title_ids"]))
        if filters["start_date"]:
            record_q = record_q.filter(Evaluation.date >= filters["start_date"])
        if filters["end_date"]:
            record_q = record_q.filter(Evaluation.date <= filters["end_date"])
        records = record_q.order_by(Evaluation.date, Evaluation.id).all()

        return records, students, criteria

    def filter_summary(filters):
        parts = []
        for key, label in (("class_ids", "Classes"), ("student_ids", "Students"),
                           ("criterion_ids", "Criteria"), ("title_ids", "Titles")):
            if filters.get(key):
                parts.append(f"{label}={','.join(str(i) for i in filters[key])}")
        if filters.get("start_date"):
            parts.append(f"From={filters['start_date'].isoformat()}")
        if filters.get("end_date"):
            parts.append(f"To={filters['end_date'].isoformat()}")
        return ", ".join(parts) if parts else "No filters applied"

    def build_report_dataset(filters):
        if filters["title_ids"] is not None and not filters["title_ids"]:
            dataset = report_table([], [])
            dataset.update({
                "criteria": [],
                "empty": True,
                "message": "Select at least one evaluation title to see data.",
            })
            return dataset

        records, students, criteria = fetch_report_inputs(filters)
        lookup = title_lookup()
        rows, visible = build_pivot(records, students, criteria, lookup)
        rows = annotate_rows(
            rows,
            FormattingRule.query.order_by(FormattingRule.id).all(),
            lookup,
            selected_title_ids=filters["title_ids"],
            default=app.config["INHERIT_COLOR"],
        )
        rows = sort_rows(rows, filters["sort"], filters["direction"])

        dataset = report_table(
            rows, visible,
            decimals=app.config["TOTAL_DECIMALS"],
            placeholder=app.config["NO_DATA_PLACEHOLDER"],
        )
        dataset.update({
            "criteria": [{"id": c.id, "name": c.name} for c in visible],
            "empty": not rows,
            "message": "" if rows else "No data for the selected filters.",
        })
        app.logger.info("Custom report: %d students, %d criteria (%s)",
                        len(rows), len(visible), filter_summary(filters))
        return dataset

    def json_filters(filters):
        out = dict(filters)
        for key in ("start_date", "end_date"):
            if out[key]:
                out[key] = out[key].isoformat()
        return out

    def rule_form_from_json():
        data = request.get_json(silent=True) or {}
        # WTForms expects form-style strings
        formdata = ImmutableMultiDict({
            k: str(v) for k, v in data.items() if v is not None and str(v).strip() != ""
        })
        return FormattingRuleForm(formdata=formdata, meta={"csrf": False})

    # ---- Error handlers

    @app.errorhandler(ReportDataError)
    def handle_report_data_error(exc):
        app.logger.error("Report data error: %s", exc)
        return jsonify({"ok": False, "error": str(exc)}), 422

    # ---- Routes

    @app.route("/")
    def index():
        return jsonify({
            "ok": True,
            "reports": ["/api/reports/custom", "/api/reports/standard"],
        })

    @app.route("/api/reports/custom")
    def api_custom_report():
        try:
            filters = parse_report_filters(request.args)
        except ValueError as exc:
            return jsonify({"ok": False, "error": str(exc)}), 400
        dataset = build_report_dataset(filters)
        dataset["filters"] = json_filters(filters)
        return jsonify(dataset)

    @app.route("/api/reports/standard")
    def api_standard_report():
        try:
            filters = parse_report_filters(request.args)
        except ValueError as exc:
            return jsonify({"ok": False, "error": str(exc)}), 400

        records, students, criteria = fetch_report_inputs(filters)
        payload = summarize_performance(
            records, students, criteria, SchoolClass.query.all(),
            threshold=app.config["LOW_PERFORMANCE_THRESHOLD"],
            limit=app.config["LOW_PERFORMANCE_LIMIT"],
        )
        payload["filters"] = json_filters(filters)
        return jsonify(payload)

    @app.route("/reports/custom.xlsx")
    def custom_report_xlsx():
        try:
            filters = parse_report_filters(request.args)
        except ValueError as exc:
            return jsonify({"ok": False, "error": str(exc)}), 400
        dataset = build_report_dataset(filters)
        out = report_to_xlsx(dataset, title="Report")
        app.logger.info("Exported custom report to xlsx (%d rows)", len(dataset["rows"]))
        return send_file(out, as_attachment=True, download_name="custom-report.xlsx", mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")

    @app.route("/reports/custom.pdf")
    def custom_report_pdf():
        try:
            filters = parse_report_filters(request.args)
        except ValueError as exc:
            return jsonify({"ok": False, "error": str(exc)}), 400
        dataset = build_report_dataset(filters)
        buffer = report_to_pdf(dataset, title="Custom report", filter_summary=filter_summary(filters))
        app.logger.info("Exported custom report to pdf (%d rows)", len(dataset["rows"]))
        return send_file(buffer, as_attachment=True, download_name="custom-report.pdf", mimetype="application/pdf")

    # ---- Lookups

    @app.route("/api/evaluation-titles")
    def api_evaluation_titles():
        titles = EvaluationTitle.query.order_by(EvaluationTitle.title).all()
        return jsonify([{"id": t.id, "title": t.title} for t in titles])

    @app.route("/api/criteria")
    def api_criteria():
        criteria = order_criteria(Criterion.query.order_by(Criterion.name).all())
        return jsonify([
            {"id": c.id, "name": c.name, "min_value": c.min_value, "max_value": c.max_value}
            for c in criteria
        ])

    # ---- Conditional formatting rules

    @app.route("/api/formatting-rules", methods=["GET"])
    def api_formatting_rules():
        q = FormattingRule.query
        title_filter = (request.args.get("title_id") or "").strip()
        if title_filter == "null":
            q = q.filter(FormattingRule.evaluation_title_id.is_(None))
        elif title_filter:
            try:
                q = q.filter(FormattingRule.evaluation_title_id == int(title_filter))
            except ValueError:
                return jsonify({"ok": False, "error": "title_id must be an id or 'null'"}), 400
        rules = q.order_by(FormattingRule.min_score.asc(), FormattingRule.id.asc()).all()
        return jsonify([r.to_dict() for r in rules])

    @app.route("/api/formatting-rules", methods=["POST"])
    def api_formatting_rule_create():
        form = rule_form_from_json()
        if not form.validate():
            return jsonify({"ok": False, "errors": form.errors}), 400
        rule = FormattingRule(
            min_score=form.min_score.data,
            max_score=form.max_score.data,
            color=form.color.data.strip(),
            evaluation_title_id=form.evaluation_title_id.data,
        )
        db.session.add(rule)
        db.session.commit()
        app.logger.info("Formatting rule %d created [%s, %s] -> %s",
                        rule.id, rule.min_score, rule.max_score, rule.color)
        return jsonify({"ok": True, "rule": rule.to_dict()}), 201

    @app.route("/api/formatting-rules/<int:rule_id>", methods=["PUT"])
    def api_formatting_rule_update(rule_id):
        rule = FormattingRule.query.get_or_404(rule_id)
        form = rule_form_from_json()
        if not form.validate():
            return jsonify({"ok": False, "errors": form.errors}), 400
        rule.min_score = form.min_score.data
        rule.max_score = form.max_score.data
        rule.color = form.color.data.strip()
        rule.evaluation_title_id = form.evaluation_title_id.data
        db.session.commit()
        app.logger.info("Formatting rule %d updated", rule.id)
        return jsonify({"ok": True, "rule": rule.to_dict()})

    @app.route("/api/formatting-rules/<int:rule_id>", methods=["DELETE"])
    def api_formatting_rule_delete(rule_id):
        rule = db.session.get(FormattingRule, rule_id)
        if rule is None:
            abort(404)
        db.session.delete(rule)
        db.session.commit()
        app.logger.info("Formatting rule %d deleted", rule_id)
        return jsonify({"ok": True})

    # ---- Critical: return the Flask app object
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
