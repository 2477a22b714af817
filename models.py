# models.py
from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, date

db = SQLAlchemy()


# ----- Core domain -----

class SchoolClass(db.Model):
    __tablename__ = "classes"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    students = db.relationship("Student", backref="klass", cascade="all, delete-orphan")


class Student(db.Model):
    __tablename__ = "students"
    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id"), nullable=False, index=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False, index=True)
    email = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    evaluations = db.relationship("Evaluation", backref="student", cascade="all, delete-orphan")


class Criterion(db.Model):
    __tablename__ = "criteria"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)  # e.g. "1-Reading"
    description = db.Column(db.Text, nullable=True)
    min_value = db.Column(db.Float, nullable=False, default=0.0)
    max_value = db.Column(db.Float, nullable=False, default=10.0)


class EvaluationTitle(db.Model):
    __tablename__ = "evaluation_titles"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(160), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


# ----- Scores -----

class Evaluation(db.Model):
    """One student's score for one criterion within an evaluation."""
    __tablename__ = "evaluations"
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    criterion_id = db.Column(db.Integer, db.ForeignKey("criteria.id"), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id"), nullable=False, index=True)
    evaluation_title_id = db.Column(db.Integer, db.ForeignKey("evaluation_titles.id"), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    value = db.Column(db.Float, nullable=True)  # NULL or 0 = not graded yet
    comments = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    criterion = db.relationship("Criterion")
    evaluation_title = db.relationship("EvaluationTitle")
    klass = db.relationship("SchoolClass")


# ----- Conditional formatting -----

class FormattingRule(db.Model):
    __tablename__ = "conditional_formatting"
    id = db.Column(db.Integer, primary_key=True)
    min_score = db.Column(db.Float, nullable=False)
    max_score = db.Column(db.Float, nullable=False)
    color = db.Column(db.String(32), nullable=False)
    # NULL = global rule
    evaluation_title_id = db.Column(db.Integer, db.ForeignKey("evaluation_titles.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    evaluation_title = db.relationship("EvaluationTitle")

    __table_args__ = (
        db.CheckConstraint("min_score <= max_score", name="ck_formatting_range"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "color": self.color,
            "evaluation_title_id": self.evaluation_title_id,
            "evaluation_title": self.evaluation_title.title if self.evaluation_title else None,
        }
