# seed.py
from datetime import date
from app import create_app
from models import (
    db, SchoolClass, Student, Criterion, EvaluationTitle, Evaluation, FormattingRule
)


def seed_demo_data():
    """Insert a small demo class. Expects an app context and empty tables."""
    klass = SchoolClass(name="Year 7 Blue", description="Demo class")
    db.session.add(klass)
    db.session.flush()  # so klass.id exists

    students = [
        Student(class_id=klass.id, first_name="Ana", last_name="Silva"),
        Student(class_id=klass.id, first_name="Bruno", last_name="Costa"),
        Student(class_id=klass.id, first_name="Carla", last_name="Mendes"),
    ]
    criteria = [
        Criterion(name="1-Reading", min_value=0, max_value=10),
        Criterion(name="2-Writing", min_value=0, max_value=10),
        Criterion(name="3-Listening", min_value=0, max_value=10),
    ]
    midterm = EvaluationTitle(title="Midterm Exam")
    final = EvaluationTitle(title="Final Exam")
    db.session.add_all(students + criteria + [midterm, final])
    db.session.flush()

    scores = {
        students[0]: (9, 8, 10),
        students[1]: (6, 5, None),
        students[2]: (4, 0, 3),  # 0 = not graded yet
    }
    for student, values in scores.items():
        for criterion, value in zip(criteria, values):
            db.session.add(Evaluation(
                student_id=student.id,
                criterion_id=criterion.id,
                class_id=klass.id,
                evaluation_title_id=final.id,
                date=date(2025, 6, 20),
                value=value,
            ))

    db.session.add_all([
        FormattingRule(min_score=0, max_score=14.9, color="#dc2626"),
        FormattingRule(min_score=15, max_score=30, color="#16a34a"),
        FormattingRule(min_score=25, max_score=30, color="#ca8a04", evaluation_title_id=final.id),
    ])
    db.session.commit()


def seed():
    app = create_app()
    with app.app_context():
        db.drop_all()
        db.create_all()
        seed_demo_data()
        print("Seeded: 1 class, 3 students, 3 criteria, 2 evaluation titles, 3 formatting rules.")


if __name__ == "__main__":
    seed()
