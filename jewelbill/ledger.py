"""Money movements: invoice creation, payments, discounts and resets.

Multi-invoice writes go through one session and are committed once, so a
failure part way leaves every invoice and the revenue bucket as they were.
"""
import logging
from datetime import timezone

from flask import current_app

from jewelbill import store
from jewelbill.calculator import invoice_total, money, price_items
from jewelbill.errors import NotFound, ResetNotConfirmed, ValidationError
from jewelbill.models import Customer, Invoice, db, new_id, utcnow

logger = logging.getLogger(__name__)

# Half a paisa. Amounts closer than this are the same amount.
TOLERANCE = 0.005


def _payment_entry(mode, amount, receiver, custom_receiver_name, when):
    config = current_app.config
    if mode not in config["PAYMENT_MODES"]:
        raise ValidationError(f"Unknown payment mode: {mode}")
    entry = {"mode": mode, "amount": amount, "timestamp": when.isoformat()}
    if mode == "PHONEPE":
        if receiver not in config["PAYMENT_RECEIVERS"]:
            raise ValidationError("Please select who received the PhonePe payment")
        entry["receiver"] = receiver
        if receiver == "OTHERS":
            name = (custom_receiver_name or "").strip()
            if not name:
                raise ValidationError("Please enter the receiver's name")
            entry["custom_receiver_name"] = name
    return entry


def _amount(value, field="amount"):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def _utc(now):
    # SQLite keeps the wall clock only, so everything is stored as UTC
    now = now or utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _item_numbers(item):
    for field in ("gross_weight", "wastage", "gold_rate", "lab_rate"):
        value = item.get(field)
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a number")
        _amount(value, field)


def receiver_label(payment):
    """Who got the money for a PhonePe entry, ``None`` for anything else."""
    if not payment or payment.get("mode") != "PHONEPE":
        return None
    if payment.get("receiver") == "OTHERS":
        return payment.get("custom_receiver_name") or "OTHERS"
    return payment.get("receiver")


# --- Invoices ---

def next_serial_number():
    highest = db.session.query(db.func.max(Invoice.serial_number)).scalar()
    return (highest or 0) + 1


def _serial(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Serial number must be a whole number")


def set_serial_number(invoice_id, serial_number):
    # No uniqueness check, the shop may reuse or skip numbers.
    return store.invoices.put(invoice_id, {"serial_number": _serial(serial_number)})


def create_invoice(customer_id, items, paid_amount=0, mode="CASH", receiver=None,
                   custom_receiver_name=None, notes=None, serial_number=None, now=None):
    customer = db.session.get(Customer, customer_id) if customer_id else None
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found")
    if not items:
        raise ValidationError("Please add at least one jewelry item")
    if mode == "DISCOUNT":
        raise ValidationError("An invoice cannot open with a discount")

    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each jewelry item must be an object")
        _item_numbers(item)

    priced = []
    for item in price_items(items):
        item.setdefault("id", new_id())
        item.setdefault("name", "")
        priced.append(item)
    total = invoice_total(priced)
    paid = _amount(paid_amount, "paid_amount")
    if paid < 0:
        raise ValidationError("Paid amount cannot be negative")
    # Negative totals are allowed; only a real payment is capped by the total
    if paid > 0 and paid > total + TOLERANCE:
        raise ValidationError("Paid amount cannot exceed the invoice total")

    if serial_number is None:
        serial_number = next_serial_number()
    else:
        serial_number = _serial(serial_number)

    now = _utc(now)
    payment = _payment_entry(mode, paid, receiver, custom_receiver_name, now)

    try:
        invoice = store.invoices.add({
            "customer_id": customer.id,
            "customer_name": customer.name,
            "customer_mobile": customer.mobile,
            "items": priced,
            "total_amount": total,
            "paid_amount": paid,
            "due_amount": total - paid,
            "invoice_date": now,
            "notes": notes,
            "payments": [payment],
            "serial_number": serial_number,
        }, commit_now=False)
        if paid > 0:
            store.add_daily_revenue(paid, day=store.local_day(now), commit_now=False)
    except Exception:
        store.rollback()
        raise
    store.commit()
    logger.info("Invoice %s created for %s: total %.2f, paid %.2f", invoice["id"], customer.name, total, paid)
    return store.invoices.get(invoice["id"])


def delete_invoice(invoice_id):
    store.invoices.delete(invoice_id)
    logger.info("Invoice %s deleted", invoice_id)


# --- Payments ---

def record_payment(customer_id, invoice_ids, amount, mode="CASH", receiver=None,
                   custom_receiver_name=None, now=None):
    """Spread one payment over the selected invoices, in the order given.

    Each invoice takes ``min(remaining, due)``; invoices already settled are
    skipped. Today's revenue grows once by the amount applied. Returns the
    updated invoices.
    """
    selected = list(dict.fromkeys(invoice_ids or []))
    if not selected:
        raise ValidationError("Please select at least one invoice")
    amount = _amount(amount)
    if amount <= 0:
        raise ValidationError("Please enter a valid payment amount")
    if mode == "DISCOUNT":
        raise ValidationError("Use the discount clearance for write-offs")

    now = _utc(now)
    payment = _payment_entry(mode, amount, receiver, custom_receiver_name, now)

    rows = []
    for invoice_id in selected:
        row = db.session.get(Invoice, invoice_id)
        if row is None:
            raise NotFound(f"Invoice {invoice_id} not found")
        if row.customer_id != customer_id:
            raise ValidationError(f"Invoice {invoice_id} belongs to another customer")
        rows.append(row)

    selected_due = sum(max(row.due_amount or 0, 0) for row in rows)
    if amount > selected_due + TOLERANCE:
        raise ValidationError("Payment amount cannot exceed total due amount")

    remaining = amount
    applied_total = 0.0
    touched = []
    try:
        for row in rows:
            if remaining <= TOLERANCE:
                break
            due = row.due_amount or 0
            if due <= 0:
                continue
            if remaining + TOLERANCE >= due:
                applied = due
                row.paid_amount = row.total_amount
                row.due_amount = 0.0
            else:
                applied = remaining
                row.paid_amount = (row.paid_amount or 0) + applied
                row.due_amount = row.total_amount - row.paid_amount
            row.payments = list(row.payments or []) + [dict(payment, amount=applied)]
            remaining -= applied
            applied_total += applied
            touched.append(row.id)
            logger.info("Applied %.2f to invoice %s, due now %.2f", applied, row.id, row.due_amount)

        # Same as amount except for sub-paisa differences settled above
        store.add_daily_revenue(applied_total, day=store.local_day(now), commit_now=False)
    except Exception:
        store.rollback()
        raise
    store.commit()
    return [store.invoices.get(invoice_id) for invoice_id in touched]


def clear_with_discount(invoice_id, now=None):
    """Write off the remaining due as a DISCOUNT entry.

    The invoice counts as settled: paid is set to total and due to zero. The
    daily revenue bucket is not touched.
    """
    row = db.session.get(Invoice, invoice_id)
    if row is None:
        raise NotFound(f"Invoice {invoice_id} not found")
    due = row.due_amount or 0
    if due <= 0:
        raise ValidationError("Invoice has nothing due")

    now = _utc(now)
    row.payments = list(row.payments or []) + [
        {"mode": "DISCOUNT", "amount": due, "timestamp": now.isoformat()}
    ]
    row.paid_amount = row.total_amount
    row.due_amount = 0.0
    store.commit()
    logger.info("Invoice %s cleared with a discount of %.2f", invoice_id, due)
    return store.invoices.get(invoice_id)


def customer_account(customer_id):
    customer = store.customers.get(customer_id)
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found")
    bills = store.find_invoices_by_customer(customer_id)
    bills.sort(key=lambda inv: inv["invoice_date"], reverse=True)
    return {
        "customer": customer,
        "invoices": bills,
        "total_amount": money(sum(inv["total_amount"] or 0 for inv in bills)),
        "received_amount": money(sum(inv["received_amount"] for inv in bills)),
        "discount_amount": money(sum(inv["discount_amount"] for inv in bills)),
        "due_amount": money(sum(inv["due_amount"] or 0 for inv in bills)),
    }


# --- Resets ---

def confirm_reset(code):
    if code != current_app.config["RESET_PASSWORD"]:
        logger.warning("Reset refused: wrong confirmation code")
        raise ResetNotConfirmed("Incorrect password")


def reset_daily_revenue(day=None):
    bucket = store.reset_daily_revenue(day=day)
    logger.info("Daily revenue for %s reset", bucket["date"])
    return bucket


def reset_all_invoices():
    removed = store.invoices.clear()
    logger.info("All invoices reset (%d removed)", removed)
    return removed


def reset_total_revenue():
    """Zero every invoice's paid amount. Payment history entries stay."""
    rows = Invoice.query.all()
    for row in rows:
        row.paid_amount = 0.0
        row.due_amount = row.total_amount
    store.commit()
    logger.info("Total revenue reset across %d invoices", len(rows))
    return len(rows)
