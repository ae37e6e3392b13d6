"""Local record store.

One table per collection in a single SQLite database. Reads hand back plain
dict snapshots; callers re-fetch to see later writes.
"""
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from jewelbill.errors import ConflictError, NotFound, StorageUnavailable
from jewelbill.models import SHOP_ID, Customer, DailyRevenue, Invoice, ShopConfig, db, new_id, utcnow

logger = logging.getLogger(__name__)


def init_store(app):
    # create_all only creates what is missing, existing tables keep their rows
    with app.app_context():
        try:
            db.create_all()
        except OperationalError as exc:
            raise StorageUnavailable(f"Database could not be opened: {exc.orig}") from exc
    logger.info("Record store ready at %s", app.config["SQLALCHEMY_DATABASE_URI"])


def _write(step):
    try:
        step()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(f"Record violates a unique key: {exc.orig}") from exc
    except OperationalError as exc:
        db.session.rollback()
        raise StorageUnavailable(f"Database write failed: {exc.orig}") from exc
    except SQLAlchemyError:
        db.session.rollback()
        raise


def commit():
    _write(db.session.commit)


def flush():
    _write(db.session.flush)


def rollback():
    db.session.rollback()


class RecordStore:
    def __init__(self, model, label):
        self.model = model
        self.label = label
        self.columns = {c.name for c in model.__table__.columns}

    def __repr__(self):
        return f"<RecordStore {self.label}>"

    def _load(self, record_id):
        return db.session.get(self.model, record_id)

    def get(self, record_id):
        row = self._load(record_id)
        return row.to_dict() if row is not None else None

    def get_all(self):
        return [row.to_dict() for row in self.model.query.all()]

    def count(self):
        return self.model.query.count()

    def add(self, fields, commit_now=True):
        fields = {k: v for k, v in dict(fields).items() if k in self.columns}
        if not fields.get("id"):
            fields["id"] = new_id()
        if self._load(fields["id"]) is not None:
            raise ConflictError(f"{self.label} {fields['id']} already exists")
        row = self.model(**fields)
        db.session.add(row)
        if commit_now:
            commit()
        else:
            flush()
        return row.to_dict()

    def put(self, record_id, fields, commit_now=True):
        row = self._load(record_id)
        if row is None:
            raise NotFound(f"{self.label} {record_id} not found")
        for key, value in fields.items():
            if key in self.columns and key != "id":
                setattr(row, key, value)
        if commit_now:
            commit()
        return row.to_dict()

    def delete(self, record_id, commit_now=True):
        row = self._load(record_id)
        if row is None:
            return
        db.session.delete(row)
        if commit_now:
            commit()

    def clear(self, commit_now=True):
        removed = self.model.query.delete()
        if commit_now:
            commit()
        return removed


shops = RecordStore(ShopConfig, "Shop")
customers = RecordStore(Customer, "Customer")
invoices = RecordStore(Invoice, "Invoice")
revenue = RecordStore(DailyRevenue, "Daily revenue")


# --- Secondary lookups ---

def find_invoices_by_customer(customer_id):
    rows = Invoice.query.filter_by(customer_id=customer_id).all()
    return [row.to_dict() for row in rows]


def search_customers(query):
    everyone = customers.get_all()
    if not query:
        return everyone
    lowered = query.lower()
    return [
        c for c in everyone
        if lowered in (c["name"] or "").lower() or query in (c["mobile"] or "")
    ]


# --- Shop singleton ---

def get_shop_config():
    shop = shops.get(SHOP_ID)
    if shop is None:
        shop = dict(current_app.config["DEFAULT_SHOP"], id=SHOP_ID, updated_at=None)
    return shop


def update_shop_config(name, address, mobile, gstin=None):
    fields = {"name": name, "address": address, "mobile": mobile, "gstin": gstin, "updated_at": utcnow()}
    if shops.get(SHOP_ID) is None:
        return shops.add(dict(fields, id=SHOP_ID))
    return shops.put(SHOP_ID, fields)


# --- Daily revenue buckets ---

def shop_zone():
    return ZoneInfo(current_app.config["SHOP_TIMEZONE"])


def local_day(moment=None):
    """Calendar day, in the shop's timezone, of ``moment`` (default: now)."""
    if moment is None:
        return datetime.now(shop_zone()).strftime("%Y-%m-%d")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(shop_zone()).strftime("%Y-%m-%d")


def local_today():
    return local_day()


def get_daily_revenue(day=None):
    day = day or local_today()
    bucket = revenue.get(day)
    if bucket is None:
        bucket = {"id": day, "date": day, "total_amount": 0.0, "last_reset": None}
    return bucket


def add_daily_revenue(amount, day=None, commit_now=True):
    day = day or local_today()
    bucket = db.session.get(DailyRevenue, day)
    if bucket is None:
        bucket = DailyRevenue(id=day, date=day, total_amount=0.0, last_reset=utcnow())
        db.session.add(bucket)
    bucket.total_amount = round((bucket.total_amount or 0.0) + amount, 2)
    if commit_now:
        commit()
    logger.info("Daily revenue for %s now %.2f", day, bucket.total_amount)
    return bucket.to_dict()


def reset_daily_revenue(day=None, commit_now=True):
    day = day or local_today()
    bucket = db.session.get(DailyRevenue, day)
    if bucket is None:
        bucket = DailyRevenue(id=day, date=day)
        db.session.add(bucket)
    bucket.total_amount = 0.0
    bucket.last_reset = utcnow()
    if commit_now:
        commit()
    return bucket.to_dict()
