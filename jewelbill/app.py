import re

from flask import Blueprint, Flask, Response, current_app, jsonify, request, send_file

from jewelbill import export, ledger, store
from jewelbill.config import Config
from jewelbill.errors import JewelBillError, NotFound, ValidationError
from jewelbill.models import db
from jewelbill.pdf import render_invoice_pdf

MOBILE_RE = re.compile(r"^\d{10}$")

bp = Blueprint("billing", __name__, url_prefix="/api")


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
    db.init_app(app)
    store.init_store(app)
    app.register_blueprint(bp)
    app.register_error_handler(JewelBillError, handle_error)
    return app


def handle_error(exc):
    current_app.logger.info("%s: %s", exc.code, exc)
    return jsonify({"error": {"code": exc.code, "message": str(exc)}}), exc.status


def payload():
    return request.get_json(silent=True) or {}


def check_customer_fields(data, partial=False):
    fields = {}
    if "name" in data or not partial:
        name = data.get("name") or ""
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Please enter the customer's name")
        fields["name"] = name.strip()
    if "mobile" in data or not partial:
        mobile = data.get("mobile") or ""
        mobile = mobile.strip() if isinstance(mobile, str) else ""
        if not MOBILE_RE.match(mobile):
            raise ValidationError("Please enter a valid 10-digit mobile number")
        fields["mobile"] = mobile
    if "address" in data:
        fields["address"] = str(data.get("address") or "").strip() or None
    return fields


# --- Shop ---

@bp.route("/shop", methods=["GET"])
def shop_detail():
    return jsonify(store.get_shop_config())


@bp.route("/shop", methods=["PUT", "POST"])
def shop_update():
    data = payload()
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Shop name is required")
    shop = store.update_shop_config(
        name.strip(), str(data.get("address") or ""), str(data.get("mobile") or ""), data.get("gstin") or None
    )
    return jsonify(shop)


# --- Customers ---

@bp.route("/customers", methods=["GET"])
def customer_list():
    return jsonify(store.search_customers(request.args.get("q", "")))


@bp.route("/customers", methods=["POST"])
def customer_add():
    customer = store.customers.add(check_customer_fields(payload()))
    current_app.logger.info("Customer %s added", customer["id"])
    return jsonify(customer), 201


@bp.route("/customers/<customer_id>", methods=["GET"])
def customer_detail(customer_id):
    customer = store.customers.get(customer_id)
    if customer is None:
        raise NotFound("Customer not found")
    return jsonify(customer)


@bp.route("/customers/<customer_id>", methods=["PATCH", "PUT"])
def customer_update(customer_id):
    fields = check_customer_fields(payload(), partial=True)
    return jsonify(store.customers.put(customer_id, fields))


@bp.route("/customers/<customer_id>/invoices", methods=["GET"])
def customer_invoices(customer_id):
    return jsonify(store.find_invoices_by_customer(customer_id))


@bp.route("/customers/<customer_id>/account", methods=["GET"])
def customer_account(customer_id):
    return jsonify(ledger.customer_account(customer_id))


@bp.route("/customers/<customer_id>/payments", methods=["POST"])
def customer_payment(customer_id):
    data = payload()
    updated = ledger.record_payment(
        customer_id,
        data.get("invoice_ids") or [],
        data.get("amount"),
        mode=data.get("mode", "CASH"),
        receiver=data.get("receiver"),
        custom_receiver_name=data.get("custom_receiver_name"),
    )
    return jsonify(updated), 201


# --- Invoices ---

@bp.route("/invoices", methods=["GET"])
def invoice_list():
    invoices = store.invoices.get_all()
    invoices.sort(key=lambda inv: inv["invoice_date"], reverse=True)
    return jsonify(invoices)


@bp.route("/invoices", methods=["POST"])
def invoice_create():
    data = payload()
    invoice = ledger.create_invoice(
        data.get("customer_id"),
        data.get("items") or [],
        paid_amount=data.get("paid_amount", 0),
        mode=data.get("mode", "CASH"),
        receiver=data.get("receiver"),
        custom_receiver_name=data.get("custom_receiver_name"),
        notes=data.get("notes"),
        serial_number=data.get("serial_number"),
    )
    return jsonify(invoice), 201


@bp.route("/invoices/next-serial", methods=["GET"])
def invoice_next_serial():
    return jsonify({"serial_number": ledger.next_serial_number()})


@bp.route("/invoices/reset", methods=["POST"])
def invoice_reset_all():
    ledger.confirm_reset(payload().get("password"))
    return jsonify({"removed": ledger.reset_all_invoices()})


@bp.route("/invoices/<invoice_id>", methods=["GET"])
def invoice_detail(invoice_id):
    invoice = store.invoices.get(invoice_id)
    if invoice is None:
        raise NotFound("Invoice not found")
    return jsonify(invoice)


@bp.route("/invoices/<invoice_id>", methods=["DELETE"])
def invoice_delete(invoice_id):
    ledger.delete_invoice(invoice_id)
    return "", 204


@bp.route("/invoices/<invoice_id>/serial", methods=["PUT", "PATCH"])
def invoice_serial(invoice_id):
    return jsonify(ledger.set_serial_number(invoice_id, payload().get("serial_number")))


@bp.route("/invoices/<invoice_id>/clear", methods=["POST"])
def invoice_clear(invoice_id):
    return jsonify(ledger.clear_with_discount(invoice_id))


@bp.route("/invoices/<invoice_id>/pdf", methods=["GET"])
def invoice_pdf(invoice_id):
    invoice = store.invoices.get(invoice_id)
    if invoice is None:
        raise NotFound("Invoice not found")
    filename = render_invoice_pdf(invoice, store.get_shop_config(), current_app.config["BILL_FOLDER"])
    return send_file(filename, as_attachment=True)


# --- Revenue ---

@bp.route("/revenue/today", methods=["GET"])
def revenue_today():
    return jsonify(store.get_daily_revenue())


@bp.route("/revenue/today/reset", methods=["POST"])
def revenue_today_reset():
    ledger.confirm_reset(payload().get("password"))
    return jsonify(ledger.reset_daily_revenue())


@bp.route("/revenue/reset", methods=["POST"])
def revenue_total_reset():
    ledger.confirm_reset(payload().get("password"))
    return jsonify({"invoices": ledger.reset_total_revenue()})


@bp.route("/dashboard", methods=["GET"])
def dashboard():
    return jsonify(export.dashboard_summary())


# --- Export ---

@bp.route("/export/customers.csv", methods=["GET"])
def export_customers():
    return Response(
        export.export_customers_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=customers.csv"},
    )


@bp.route("/export/invoices.csv", methods=["GET"])
def export_invoices():
    return Response(
        export.export_invoices_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=invoices.csv"},
    )


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
