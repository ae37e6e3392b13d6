import csv
import io
import logging
from datetime import timezone

from jewelbill import store
from jewelbill.ledger import receiver_label

logger = logging.getLogger(__name__)

CUSTOMER_HEADERS = ["ID", "Name", "Mobile", "Address", "Created Date"]
INVOICE_HEADERS = [
    "Invoice ID",
    "Customer Name",
    "Mobile",
    "Date",
    "Total Amount",
    "Paid Amount",
    "Due Amount",
    "Items Count",
    "Payment Mode",
    "Payment Receiver",
]


def format_date(moment):
    """dd/mm/yyyy, hh:mm am in the shop's timezone. Naive values are UTC."""
    if moment is None:
        return ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(store.shop_zone())
    return local.strftime("%d/%m/%Y, %I:%M %p").lower()


def format_inr(amount):
    """Indian digit grouping: 1234567.5 -> 12,34,567.5"""
    if amount is None:
        return "0"
    text = f"{abs(amount):.2f}".rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    sign = "-" if amount < 0 else ""
    return sign + whole + ("." + fraction if fraction else "")


def _to_csv(headers, rows):
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buf.getvalue()


def customer_row(customer):
    return [
        customer["id"],
        customer["name"],
        customer["mobile"],
        customer.get("address") or "",
        format_date(customer.get("created_at")),
    ]


def invoice_row(invoice):
    payments = invoice.get("payments") or []
    last_payment = payments[-1] if payments else None
    return [
        invoice.get("id") or "",
        invoice.get("customer_name") or "",
        invoice.get("customer_mobile") or "",
        format_date(invoice.get("invoice_date")),
        format_inr(invoice.get("total_amount")),
        format_inr(invoice.get("paid_amount")),
        format_inr(invoice.get("due_amount")),
        len(invoice.get("items") or []),
        last_payment["mode"] if last_payment else "N/A",
        receiver_label(last_payment) or "N/A",
    ]


def export_customers_csv():
    rows = []
    for customer in store.customers.get_all():
        try:
            rows.append(customer_row(customer))
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.exception("Could not format customer row %r", customer.get("id"))
            rows.append([customer.get("id") or "", "Error", "Error", "", ""])
    return _to_csv(CUSTOMER_HEADERS, rows)


def export_invoices_csv():
    invoices = store.invoices.get_all()
    logger.info("Exporting %d invoices", len(invoices))
    rows = []
    for invoice in invoices:
        try:
            rows.append(invoice_row(invoice))
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.exception("Could not format invoice row %r", invoice.get("id"))
            rows.append([invoice.get("id") or "", "Error", "Error", "Error", "0", "0", "0", "0", "N/A", "N/A"])
    return _to_csv(INVOICE_HEADERS, rows)


def dashboard_summary(recent=5):
    invoices = store.invoices.get_all()
    newest = sorted(invoices, key=lambda inv: inv["invoice_date"], reverse=True)
    return {
        "customer_count": store.customers.count(),
        "invoice_count": len(invoices),
        "total_revenue": round(sum(inv["paid_amount"] or 0 for inv in invoices), 2),
        "recent_invoices": newest[:recent],
        "daily_revenue": store.get_daily_revenue(),
    }
