import copy
import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

SHOP_ID = "shop"


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class ShopConfig(db.Model):
    __tablename__ = "shop"
    id = db.Column(db.String(36), primary_key=True, default=SHOP_ID)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(200), default="")
    mobile = db.Column(db.String(50), default="")
    gstin = db.Column(db.String(50))
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "mobile": self.mobile,
            "gstin": self.gstin,
            "updated_at": self.updated_at,
        }


class Customer(db.Model):
    __tablename__ = "customers"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False, index=True)
    mobile = db.Column(db.String(15), nullable=False, unique=True)
    address = db.Column(db.String(200))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "mobile": self.mobile,
            "address": self.address,
            "created_at": self.created_at,
        }


class Invoice(db.Model):
    __tablename__ = "invoices"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), nullable=False, index=True)
    # Snapshot taken at creation; later customer edits do not flow back here.
    customer_name = db.Column(db.String(100))
    customer_mobile = db.Column(db.String(15))
    items = db.Column(db.JSON, default=list)
    total_amount = db.Column(db.Float)
    paid_amount = db.Column(db.Float, default=0.0)
    due_amount = db.Column(db.Float, default=0.0)
    invoice_date = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    notes = db.Column(db.Text)
    payments = db.Column(db.JSON, default=list)
    serial_number = db.Column(db.Integer)

    @property
    def received_amount(self):
        return sum(p.get("amount", 0) for p in self.payments or [] if p.get("mode") != "DISCOUNT")

    @property
    def discount_amount(self):
        return sum(p.get("amount", 0) for p in self.payments or [] if p.get("mode") == "DISCOUNT")

    def to_dict(self):
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_mobile": self.customer_mobile,
            "items": copy.deepcopy(self.items or []),
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "due_amount": self.due_amount,
            "received_amount": self.received_amount,
            "discount_amount": self.discount_amount,
            "invoice_date": self.invoice_date,
            "notes": self.notes,
            "payments": copy.deepcopy(self.payments or []),
            "serial_number": self.serial_number,
        }


class DailyRevenue(db.Model):
    __tablename__ = "daily_revenue"
    # Keyed by the calendar day, YYYY-MM-DD.
    id = db.Column(db.String(10), primary_key=True)
    date = db.Column(db.String(10), nullable=False, unique=True)
    total_amount = db.Column(db.Float, default=0.0)
    last_reset = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date,
            "total_amount": self.total_amount,
            "last_reset": self.last_reset,
        }
