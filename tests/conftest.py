import pytest

from app import create_app
from config import TestConfig
from models import db, EvaluationTitle, Student, Criterion
from seed import seed_demo_data


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(app):
    seed_demo_data()
    return {
        "titles": {t.title: t.id for t in EvaluationTitle.query.all()},
        "students": {s.first_name: s.id for s in Student.query.all()},
        "criteria": {c.name: c.id for c in Criterion.query.all()},
    }
