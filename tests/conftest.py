from datetime import datetime, timezone

import pytest

from jewelbill import create_app, store
from jewelbill.models import db

# 11:30 in the shop's timezone, so the revenue day is unambiguous
NOON = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
DAY = "2024-05-01"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "BILL_FOLDER": str(tmp_path / "bills"),
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customer(ctx):
    return store.customers.add({"name": "Lakshmi Devi", "mobile": "9876543210", "address": "Achampet"})


def gold(grams, rate=10.0, wastage=0.0, lab=0.0, name="Ring"):
    return {"name": name, "gross_weight": grams, "wastage": wastage, "gold_rate": rate, "lab_rate": lab}
