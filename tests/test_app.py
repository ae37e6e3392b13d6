import pytest


@pytest.fixture
def customer_id(client):
    res = client.post("/api/customers", json={"name": "Lakshmi Devi", "mobile": "9876543210"})
    assert res.status_code == 201
    return res.get_json()["id"]


def new_invoice(client, customer_id, grams, paid=0):
    res = client.post("/api/invoices", json={
        "customer_id": customer_id,
        "items": [{"name": "Ring", "gross_weight": grams, "wastage": 0, "gold_rate": 10, "lab_rate": 0}],
        "paid_amount": paid,
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.mark.parametrize("mobile", ["98765", "98765432100", "98765abcde", ""])
def test_customer_mobile_must_be_ten_digits(client, mobile):
    res = client.post("/api/customers", json={"name": "Ravi", "mobile": mobile})
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_duplicate_mobile_is_conflict(client, customer_id):
    res = client.post("/api/customers", json={"name": "Someone", "mobile": "9876543210"})
    assert res.status_code == 409


def test_customer_search_and_update(client, customer_id):
    client.post("/api/customers", json={"name": "Gopal", "mobile": "9988776655"})
    assert len(client.get("/api/customers").get_json()) == 2
    assert [c["name"] for c in client.get("/api/customers?q=lak").get_json()] == ["Lakshmi Devi"]

    res = client.patch(f"/api/customers/{customer_id}", json={"address": "Achampet"})
    assert res.get_json()["address"] == "Achampet"
    assert client.get("/api/customers/missing").status_code == 404


def test_invoice_payment_flow(client, customer_id):
    a = new_invoice(client, customer_id, 10)
    b = new_invoice(client, customer_id, 5)
    assert client.get("/api/invoices/next-serial").get_json() == {"serial_number": 3}

    res = client.post(f"/api/customers/{customer_id}/payments", json={
        "invoice_ids": [a["id"], b["id"]], "amount": 120, "mode": "CASH",
    })
    assert res.status_code == 201
    assert [inv["due_amount"] for inv in res.get_json()] == [0, 30]
    assert client.get("/api/revenue/today").get_json()["total_amount"] == 120

    res = client.post(f"/api/invoices/{b['id']}/clear")
    assert res.get_json()["due_amount"] == 0
    assert client.get("/api/revenue/today").get_json()["total_amount"] == 120

    account = client.get(f"/api/customers/{customer_id}/account").get_json()
    assert account["received_amount"] == 120
    assert account["discount_amount"] == 30


def test_overpayment_rejected(client, customer_id):
    a = new_invoice(client, customer_id, 10)
    res = client.post(f"/api/customers/{customer_id}/payments", json={"invoice_ids": [a["id"]], "amount": 101})
    assert res.status_code == 400
    assert client.get(f"/api/invoices/{a['id']}").get_json()["due_amount"] == 100


def test_resets_need_the_confirmation_code(client, customer_id):
    new_invoice(client, customer_id, 10, paid=40)

    assert client.post("/api/invoices/reset", json={"password": "1111"}).status_code == 403
    assert len(client.get("/api/invoices").get_json()) == 1

    res = client.post("/api/revenue/today/reset", json={"password": "0077"})
    assert res.get_json()["total_amount"] == 0

    res = client.post("/api/revenue/reset", json={"password": "0077"})
    assert res.get_json() == {"invoices": 1}
    assert client.get("/api/invoices").get_json()[0]["paid_amount"] == 0

    res = client.post("/api/invoices/reset", json={"password": "0077"})
    assert res.get_json() == {"removed": 1}
    assert client.get("/api/invoices").get_json() == []


def test_delete_and_serial(client, customer_id):
    a = new_invoice(client, customer_id, 10)
    res = client.put(f"/api/invoices/{a['id']}/serial", json={"serial_number": 77})
    assert res.get_json()["serial_number"] == 77
    assert client.delete(f"/api/invoices/{a['id']}").status_code == 204
    assert client.delete(f"/api/invoices/{a['id']}").status_code == 204
    assert client.get(f"/api/invoices/{a['id']}").status_code == 404


def test_exports_and_pdf(client, customer_id):
    a = new_invoice(client, customer_id, 10, paid=10)

    res = client.get("/api/export/customers.csv")
    assert res.mimetype == "text/csv"
    assert len(res.get_data(as_text=True).splitlines()) == 2

    res = client.get("/api/export/invoices.csv")
    assert a["id"] in res.get_data(as_text=True)

    res = client.get(f"/api/invoices/{a['id']}/pdf")
    assert res.status_code == 200
    assert res.data.startswith(b"%PDF-")


def test_shop_settings(client):
    assert client.get("/api/shop").get_json()["name"] == "RK Jewellers"
    res = client.put("/api/shop", json={"name": "Sri Lakshmi Jewellers", "address": "Main Road", "mobile": "9440370408"})
    assert res.get_json()["name"] == "Sri Lakshmi Jewellers"
    assert client.put("/api/shop", json={"name": ""}).status_code == 400


def test_dashboard(client, customer_id):
    new_invoice(client, customer_id, 10, paid=25)
    summary = client.get("/api/dashboard").get_json()
    assert summary["invoice_count"] == 1
    assert summary["total_revenue"] == 25


@pytest.mark.parametrize("field", ["gross_weight", "wastage", "gold_rate", "lab_rate"])
def test_non_numeric_item_fields_are_rejected(client, customer_id, field):
    item = {"name": "Ring", "gross_weight": 10, "wastage": 0, "gold_rate": 10, "lab_rate": 0}
    item[field] = "abc"
    res = client.post("/api/invoices", json={"customer_id": customer_id, "items": [item]})
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"
    assert client.get("/api/invoices").get_json() == []


def test_items_must_be_objects(client, customer_id):
    res = client.post("/api/invoices", json={"customer_id": customer_id, "items": ["ring"]})
    assert res.status_code == 400


@pytest.mark.parametrize("body", [
    {"name": "Ravi", "mobile": 9876543210},
    {"name": 42, "mobile": "9876543210"},
])
def test_customer_fields_of_wrong_type_are_rejected(client, body):
    res = client.post("/api/customers", json=body)
    assert res.status_code == 400


def test_shop_name_of_wrong_type_is_rejected(client):
    assert client.put("/api/shop", json={"name": 7}).status_code == 400
