import json

from conftest import delivery_payload, spot_payload

PNG_FILE = {"payment_proof": ("proof.png", b"\x89PNG fake screenshot", "image/png")}


def _draft(client, payload):
    res = client.post("/orders/draft", json=payload)
    assert res.status_code == 200, res.text
    return res.json()


def _submit(client, payload, order_id, files=PNG_FILE):
    return client.post(
        "/orders",
        data={"order": json.dumps(dict(payload, id=order_id))},
        files=files,
    )


def test_health_check(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "service": "phicoffee-backend"}


def test_catalog(client):
    res = client.get("/catalog")
    assert res.status_code == 200
    data = res.json()
    assert [i["key"] for i in data] == [
        "phista coffee",
        "Phicoffee Caramel Macchiato",
        "Phicoffee Brown Sugar",
    ]
    assert data[0]["unit_price_display"] == "20,000"
    assert data[2]["unit_price"] == 18000


def test_weekly_schedule(client):
    res = client.get("/schedule/weekly")
    assert res.status_code == 200
    data = res.json()
    assert len(data) == 3
    assert data[0]["order_days"].startswith("Minggu-Senin-Selasa (")


def test_delivery_date_for_tuesday(client):
    res = client.get("/schedule/delivery", params={"order_date": "2026-10-20"})
    assert res.status_code == 200
    assert res.json() == {
        "order_date": "2026-10-20",
        "delivery_date": "2026-10-21",
        "delivery_label": "Rabu, 21 Oktober 2026",
    }


def test_delivery_date_for_sunday(client):
    res = client.get("/schedule/delivery", params={"order_date": "2026-12-27"})
    assert res.json()["delivery_date"] == "2026-12-30"


def test_delivery_date_requires_a_date(client):
    assert client.get("/schedule/delivery", params={"order_date": "besok"}).status_code == 422


# ---- orders ----


def test_draft(client):
    data = _draft(client, delivery_payload())
    assert data["id"].startswith("ORDER-")
    assert data["status"] == "pending_payment"
    assert data["total_price"] == 78000


def test_draft_invalid_body_is_422(client):
    res = client.post("/orders/draft", json=delivery_payload(name="A"))
    assert res.status_code == 422


def test_draft_unknown_field_is_422(client):
    res = client.post("/orders/draft", json=delivery_payload(discount=5000))
    assert res.status_code == 422


def test_draft_unknown_product_is_400(client):
    payload = delivery_payload(
        coffee_selections=[{"type": "espresso", "ice": {"with_ice": 1, "without_ice": 0}}]
    )
    res = client.post("/orders/draft", json=payload)
    assert res.status_code == 400
    assert res.json()["detail"] == "Unknown coffee type: espresso"


def test_submit_and_fetch_invoice(client, spreadsheet, notifier):
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = _submit(client, payload, draft["id"])
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["success"] is True
    assert body["status"] == "pending_verification"
    assert body["invoice_url"] == f"https://phicoffee.test/invoice/{draft['id']}"
    assert body["steps"]["row_appended"] is True
    assert len(spreadsheet.sheets["NEW"].rows) == 2
    assert len(notifier.messages) == 1

    res = client.get(f"/orders/{draft['id']}/invoice")
    assert res.status_code == 200
    invoice = res.json()
    assert invoice["id"] == draft["id"]
    assert invoice["total_price"] == 78000
    assert invoice["status"] == "pending_verification"
    assert invoice["channel"] == "delivery"


def test_submit_spot_order(client, spreadsheet):
    payload = spot_payload()
    draft = _draft(client, payload)

    res = _submit(client, payload, draft["id"])
    assert res.status_code == 201
    assert "SPOT" in spreadsheet.sheets

    invoice = client.get(f"/orders/{draft['id']}/invoice").json()
    assert invoice["pickup_time"] == "13:30"
    assert invoice["delivery_schedule"] is None


def test_submit_without_proof_is_400(client, spreadsheet):
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = client.post("/orders", data={"order": json.dumps(dict(payload, id=draft["id"]))})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Please upload payment proof first"
    assert spreadsheet.sheets == {}


def test_submit_with_pdf_proof_is_400(client):
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = _submit(
        client, payload, draft["id"], files={"payment_proof": ("proof.pdf", b"%PDF", "application/pdf")}
    )
    assert res.status_code == 400
    assert res.json()["failed_step"] == "validate"


def test_submit_invalid_order_is_400(client):
    res = _submit(client, delivery_payload(phone="12"), "ORDER-1792465509000-abc123xyz")
    assert res.status_code == 400
    assert res.json()["error"] == "Please enter a valid phone number."


def test_submit_upload_failure_is_502(client, proof_store):
    proof_store.fail = True
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = _submit(client, payload, draft["id"])
    assert res.status_code == 502
    assert res.json()["failed_step"] == "upload_proof"


def test_submit_append_failure_is_502(client, spreadsheet):
    spreadsheet.add_worksheet("NEW", rows=10, cols=17).fail = True
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = _submit(client, payload, draft["id"])
    assert res.status_code == 502
    body = res.json()
    assert body["error"] == "Failed to save order"
    assert body["steps"]["proof_uploaded"] is True


def test_submit_succeeds_when_notification_fails(client, notifier):
    notifier.fail = True
    payload = delivery_payload()
    draft = _draft(client, payload)

    res = _submit(client, payload, draft["id"])
    assert res.status_code == 201
    assert res.json()["steps"]["notification_sent"] is False


def test_invoice_not_found(client):
    res = client.get("/orders/ORDER-1792465509000-nothere00/invoice")
    assert res.status_code == 404
    assert res.json()["detail"] == "Order not found"


# ---- feedback ----


def test_feedback(client, spreadsheet):
    res = client.post("/feedback", json={"order_id": "ORDER-1-a", "rating": 4, "comment": "Enak"})
    assert res.status_code == 200
    assert res.json() == {"success": True}
    row = spreadsheet.sheets["FEEDBACK"].rows[1]
    assert row[1:] == ["ORDER-1-a", 4, "Enak"]


def test_feedback_out_of_range_rating_appends_nothing(client, spreadsheet):
    res = client.post("/feedback", json={"order_id": "ORDER-1-a", "rating": 6})
    assert res.status_code == 422
    assert spreadsheet.sheets == {}


def test_feedback_string_rating_is_422(client):
    res = client.post("/feedback", json={"order_id": "ORDER-1-a", "rating": "5"})
    assert res.status_code == 422


def test_feedback_upstream_failure_is_502(client, spreadsheet):
    spreadsheet.add_worksheet("FEEDBACK", rows=10, cols=4).fail = True
    res = client.post("/feedback", json={"order_id": "ORDER-1-a", "rating": 5})
    assert res.status_code == 502
    assert res.json()["detail"] == "Failed to submit feedback"
