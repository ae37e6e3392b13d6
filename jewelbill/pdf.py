import os
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from jewelbill.export import format_date, format_inr
from jewelbill.ledger import receiver_label


def _rs(amount):
    return f"Rs. {format_inr(amount)}"


def invoice_filename(invoice):
    label = invoice.get("serial_number") or invoice["id"][:8]
    return f"Invoice_{label}.pdf"


def render_invoice_pdf(invoice, shop, folder):
    os.makedirs(folder, exist_ok=True)
    filename = os.path.abspath(os.path.join(folder, invoice_filename(invoice)))

    doc = SimpleDocTemplate(filename, pagesize=A4)
    styles = getSampleStyleSheet()
    elements = []

    # --- Header ---
    elements.append(Paragraph(f"<b>{escape(shop['name'])}</b>", styles["Title"]))
    contact = f"{escape(shop.get('address') or '')}<br/>Mob: {escape(shop.get('mobile') or '')}"
    if shop.get("gstin"):
        contact += f" | GSTIN: {shop['gstin']}"
    elements.append(Paragraph(contact, styles["Normal"]))
    elements.append(Spacer(1, 15))

    # --- Customer & Bill Info ---
    cust_info = [
        [f"Customer: {invoice.get('customer_name') or ''}", f"Invoice No: {invoice.get('serial_number') or '-'}"],
        [f"Mobile: {invoice.get('customer_mobile') or ''}", f"Date: {format_date(invoice.get('invoice_date'))}"],
    ]
    t_cust = Table(cust_info, colWidths=[260, 220])
    t_cust.setStyle(TableStyle([("LINEBELOW", (0, 1), (-1, 1), 1, colors.black)]))
    elements.append(t_cust)
    elements.append(Spacer(1, 15))

    # --- Items ---
    item_data = [["Item", "Gross (g)", "Wastage %", "Net (g)", "Rate/g", "Lab", "Amount"]]
    for item in invoice.get("items") or []:
        item_data.append([
            item.get("name", ""),
            f"{item.get('gross_weight', 0):.3f}",
            f"{item.get('wastage', 0):g}",
            f"{item.get('net_weight', 0):.3f}",
            format_inr(item.get("gold_rate")),
            format_inr(item.get("lab_rate")),
            format_inr(round(item.get("amount", 0), 2)),
        ])
    t_items = Table(item_data, colWidths=[130, 55, 55, 55, 60, 55, 70])
    t_items.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
    ]))
    elements.append(Paragraph("<b>Purchase Details:</b>", styles["Heading4"]))
    elements.append(t_items)
    elements.append(Spacer(1, 20))

    # --- Totals ---
    summary_data = [
        ["TOTAL AMOUNT:", _rs(round(invoice.get("total_amount") or 0, 2))],
        ["PAID:", _rs(round(invoice.get("received_amount") or 0, 2))],
    ]
    if invoice.get("discount_amount"):
        summary_data.append(["DISCOUNT:", _rs(round(invoice["discount_amount"], 2))])
    summary_data.append(["BALANCE DUE:", _rs(round(invoice.get("due_amount") or 0, 2))])
    t_summary = Table(summary_data, colWidths=[120, 120], hAlign="RIGHT")
    t_summary.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
        ("TEXTCOLOR", (1, -1), (1, -1), colors.red),
        ("BACKGROUND", (0, 0), (-1, -1), colors.whitesmoke),
    ]))
    elements.append(t_summary)

    # --- Payment history ---
    payments = [p for p in invoice.get("payments") or [] if p.get("amount")]
    if payments:
        elements.append(Spacer(1, 15))
        elements.append(Paragraph("<b>Payments:</b>", styles["Heading4"]))
        history = [["Mode", "Received By", "Amount"]]
        for p in payments:
            history.append([p.get("mode", ""), receiver_label(p) or "-", _rs(round(p["amount"], 2))])
        t_history = Table(history, colWidths=[120, 160, 100])
        t_history.setStyle(TableStyle([("GRID", (0, 0), (-1, -1), 0.5, colors.grey)]))
        elements.append(t_history)

    if invoice.get("notes"):
        elements.append(Spacer(1, 10))
        elements.append(Paragraph(f"Notes: {escape(invoice['notes'])}", styles["Normal"]))

    elements.append(Spacer(1, 60))
    elements.append(Paragraph("__________________________", styles["Normal"]))
    elements.append(Paragraph("Authorized Signatory", styles["Normal"]))

    doc.build(elements)
    return filename
