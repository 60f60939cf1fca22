from tests.helpers import ADMIN_ID, CUSTOMER_ID, OTHER_ID, auth_header, future_day

ALICE = auth_header(CUSTOMER_ID, "alice@example.com")
BOB = auth_header(OTHER_ID, "bob@example.com")
ADMIN = auth_header(ADMIN_ID, "admin@itclinic.test")


def create_service(client, name="Laptop Repair"):
    svc = {"name": name, "description": "Hardware repair", "price": 150000.0, "duration_minutes": 120}
    res = client.post("/services/", json=svc, headers=ADMIN)
    assert res.status_code == 201, res.text
    return res.json()["id"]


def book(client, service_id, headers=ALICE, **overrides):
    payload = {"service_id": service_id, "booking_date": future_day(), "booking_time": "09:00"}
    payload.update(overrides)
    return client.post("/reservations/", json=payload, headers=headers)


def test_flow(client, profiles):
    service_id = create_service(client)

    # Customer books a slot
    res = book(client, service_id, device_info="ThinkPad T480", problem_description="Will not power on")
    assert res.status_code == 201, res.text
    reservation = res.json()["reservation"]
    assert reservation["status"] == "pending"
    assert reservation["repair_status"] == "registered"
    assert reservation["service"]["name"] == "Laptop Repair"
    assert "admin_notes" not in reservation

    # Same slot again is refused
    res = book(client, service_id)
    assert res.status_code == 409, res.text
    assert res.json()["error"] == "conflict"

    # Admin moves the repair along and leaves a note
    res = client.put(
        f"/admin/reservations/{reservation['id']}/repair-status",
        json={"repair_status": "diagnosing"},
        headers=ADMIN,
    )
    assert res.status_code == 200, res.text
    assert res.json()["reservation"]["user"]["email"] == "alice@example.com"
    res = client.put(
        f"/admin/reservations/{reservation['id']}/notes",
        json={"admin_notes": "Battery swollen"},
        headers=ADMIN,
    )
    assert res.json()["reservation"]["admin_notes"] == "Battery swollen"

    # Customer sees the new repair status but not the note
    res = client.get("/reservations/me", headers=ALICE)
    assert res.status_code == 200
    mine = res.json()
    assert [r["repair_status"] for r in mine] == ["diagnosing"]
    assert "admin_notes" not in mine[0]

    # Another customer cannot cancel it
    res = client.put(f"/reservations/{reservation['id']}/cancel", headers=BOB)
    assert res.status_code == 403

    # Owner cancels, and a second cancel is refused
    res = client.put(f"/reservations/{reservation['id']}/cancel", headers=ALICE)
    assert res.status_code == 200, res.text
    assert res.json()["reservation"]["status"] == "cancelled"
    res = client.put(f"/reservations/{reservation['id']}/cancel", headers=ALICE)
    assert res.status_code == 409
    assert res.json()["error"] == "invalid_state"

    # The cancelled slot can be booked again
    assert book(client, service_id).status_code == 201


def test_validation_envelope(client, profiles):
    service_id = create_service(client)
    res = book(client, service_id, booking_date="2000-01-01", booking_time="12:00")
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "validation_error"
    assert [e["field"] for e in body["errors"]] == ["booking_date", "booking_time"]
    assert body["errors"][1]["message"] == "Booking time must be one of the available slots"


def test_unknown_service_is_not_found(client, profiles):
    res = book(client, "9b2f6a52-8d1e-4c1f-9d5e-0b5c2b6f7a10")
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"


def test_authentication_required(client):
    assert client.get("/reservations/me").status_code == 401
    res = client.get("/reservations/me", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401


def test_admin_routes_refuse_customers(client, profiles):
    assert client.get("/admin/reservations", headers=ALICE).status_code == 403
    assert client.get("/admin/dashboard", headers=ALICE).status_code == 403
    res = client.post("/services/", json={"name": "Data Recovery", "price": 1}, headers=ALICE)
    assert res.status_code == 403
    assert res.json()["error"] == "forbidden"


def test_first_request_provisions_profile(client):
    subject = "44444444-4444-4444-8444-444444444444"
    headers = auth_header(subject, "citra@example.com")
    res = client.get("/me", headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["email"] == "citra@example.com"
    assert res.json()["role"] == "user"

    res = client.put("/me", json={"full_name": "Citra Lestari", "phone": "081234567890"}, headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["profile"]["full_name"] == "Citra Lestari"

    res = client.put("/me", json={"full_name": "C", "phone": "12"}, headers=headers)
    assert res.status_code == 400
    assert [e["field"] for e in res.json()["errors"]] == ["full_name", "phone"]


def test_dashboards_and_calendar(client, profiles):
    service_id = create_service(client)
    day = future_day(3)
    assert book(client, service_id, booking_date=day).status_code == 201
    assert book(client, service_id, headers=BOB, booking_date=day, booking_time="10:00").status_code == 201

    res = client.get("/me/dashboard", headers=ALICE)
    assert res.status_code == 200, res.text
    assert res.json()["counts"] == {"total": 1, "active": 1, "completed": 0, "cancelled": 0}

    res = client.get("/admin/dashboard", headers=ADMIN)
    assert res.status_code == 200, res.text
    data = res.json()
    assert data["totals"]["reservations"] == 2
    assert data["repair_status_counts"]["registered"] == 2

    year, month = int(day[:4]), int(day[5:7])
    res = client.get("/admin/calendar", params={"year": year, "month": month}, headers=ADMIN)
    assert res.status_code == 200, res.text
    cell = [d for d in res.json()["days"] if d["day"] == day][0]
    assert cell["total"] == 2
    assert [r["booking_time"] for r in cell["visible"]] == ["09:00", "10:00"]

    res = client.get("/admin/reservations", params={"search": "santoso"}, headers=ADMIN)
    assert [r["user"]["full_name"] for r in res.json()] == ["Bob Santoso"]


def test_catalog_admin(client, profiles):
    product = {"name": "SSD 512GB", "price": 750000, "stock": 8, "category": "Storage"}
    res = client.post("/products/", json=product, headers=ADMIN)
    assert res.status_code == 201, res.text
    product_id = res.json()["id"]

    res = client.get("/products/", params={"search": "ssd"})
    assert [p["name"] for p in res.json()] == ["SSD 512GB"]

    res = client.put(f"/products/{product_id}", json={"stock": 2}, headers=ADMIN)
    assert res.json()["stock"] == 2

    res = client.delete(f"/products/{product_id}", headers=ADMIN)
    assert res.json()["ok"] is True
    assert client.get(f"/products/{product_id}").status_code == 404

    create_service(client, "Network Setup")
    res = client.post("/services/", json={"name": "Network Setup", "price": 1}, headers=ADMIN)
    assert res.status_code == 409


def test_catalog_forms_rejected(client, profiles):
    res = client.post("/services/", json={"name": "ab", "price": -1}, headers=ADMIN)
    assert res.status_code == 400
    assert [e["field"] for e in res.json()["errors"]] == ["name", "price"]

    res = client.post("/products/", json={"name": "SSD 1TB", "price": 10, "stock": -1}, headers=ADMIN)
    assert res.status_code == 400
    assert [e["field"] for e in res.json()["errors"]] == ["stock", "category"]

    service_id = create_service(client)
    res = client.put(f"/services/{service_id}", json={"duration_minutes": 5}, headers=ADMIN)
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "duration_minutes"
    res = client.put(f"/services/{service_id}", json={"price": 175000}, headers=ADMIN)
    assert res.status_code == 200, res.text
    assert res.json()["price"] == 175000
    assert res.json()["duration_minutes"] == 120


def test_contact_form_rejected(client):
    res = client.post(
        "/contact/",
        json={"name": "Budi", "email": "budi@example.com", "message": "Can you fix a cracked hinge?"},
    )
    assert res.status_code == 400
    assert res.json()["errors"] == [{"field": "subject", "message": "Field required"}]


def test_public_endpoints(client, profiles):
    res = client.post(
        "/contact/",
        json={
            "name": "Budi",
            "email": "budi@example.com",
            "subject": "Hinge repair",
            "message": "Can you fix a cracked hinge?",
        },
    )
    assert res.status_code == 201, res.text
    consultation_id = res.json()["consultation"]["id"]
    assert res.json()["consultation"]["status"] == "new"

    res = client.put(f"/admin/consultations/{consultation_id}/status", json={"status": "resolved"}, headers=ADMIN)
    assert res.json()["consultation"]["status"] == "resolved"

    assert client.get("/testimonials/").json() == []
    assert client.get("/stats/").json()["total_customers"] == 2
    assert client.get("/reservations/slots").json()[0] == "09:00"


def test_response_headers(client):
    res = client.get("/services/", headers={"X-Request-Id": "abc-123"})
    assert res.status_code == 200
    assert res.headers["X-Request-Id"] == "abc-123"
    assert res.headers["X-Frame-Options"] == "DENY"
    assert res.headers["X-Content-Type-Options"] == "nosniff"
