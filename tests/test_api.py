from core.errors import TransportError
from repositories.base import OwnedRepository
from tests.helpers import register


API = "/api/v1"


def make_catalog(client, headers):
    cli = client.post(f"{API}/clients", json={"name": "Ana", "email": ""}, headers=headers)
    pro = client.post(f"{API}/professionals", json={"name": "Paula"}, headers=headers)
    svc = client.post(f"{API}/services", json={"name": "Haircut", "price": 5000, "duration": 30}, headers=headers)
    for resp in (cli, pro, svc):
        assert resp.status_code == 201, resp.text
    return {"client_id": cli.json()["id"], "professional_id": pro.json()["id"], "service_id": svc.json()["id"]}


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


class TestAuth:
    def test_signup_login_and_me(self, client):
        headers = register(client, "Owner@Example.com")
        me = client.get(f"{API}/users/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["email"] == "owner@example.com"

    def test_duplicate_signup(self, client):
        register(client, "dup@example.com")
        resp = client.post(
            f"{API}/auth/signup", json={"name": "Dup", "email": "DUP@example.com", "password": "another-pass"}
        )
        assert resp.status_code == 409

    def test_wrong_password(self, client):
        register(client, "who@example.com")
        resp = client.post(f"{API}/auth/login", data={"username": "who@example.com", "password": "wrong-pass"})
        assert resp.status_code == 401

    def test_routes_require_token(self, client):
        assert client.get(f"{API}/clients").status_code == 401
        assert client.get(f"{API}/appointments", headers={"Authorization": "Bearer junk"}).status_code == 401


class TestRecords:
    def test_client_crud(self, client, auth_headers):
        created = client.post(f"{API}/clients", json={"name": "Ana", "phone": "555"}, headers=auth_headers).json()
        record_url = f"{API}/clients/{created['id']}"

        assert client.get(record_url, headers=auth_headers).json()["phone"] == "555"
        patched = client.patch(record_url, json={"notes": "prefers mornings"}, headers=auth_headers)
        assert patched.json()["notes"] == "prefers mornings"
        assert patched.json()["name"] == "Ana"

        assert client.delete(record_url, headers=auth_headers).status_code == 200
        assert client.get(record_url, headers=auth_headers).status_code == 404

    def test_field_errors_payload(self, client, auth_headers):
        resp = client.post(f"{API}/services", json={"name": "", "price": 0}, headers=auth_headers)
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "validation_error"
        assert {e["field"] for e in body["errors"]} == {"name", "price", "duration"}

    def test_patch_cannot_null_required_field(self, client, auth_headers):
        created = client.post(f"{API}/professionals", json={"name": "Paula"}, headers=auth_headers).json()
        resp = client.patch(f"{API}/professionals/{created['id']}", json={"name": None}, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["errors"][0]["field"] == "name"

    def test_records_are_private_to_their_owner(self, client, auth_headers):
        created = client.post(f"{API}/clients", json={"name": "Ana"}, headers=auth_headers).json()
        intruder = register(client, "intruder@example.com")

        assert client.get(f"{API}/clients", headers=intruder).json() == []
        assert client.get(f"{API}/clients/{created['id']}", headers=intruder).status_code == 404
        assert client.delete(f"{API}/clients/{created['id']}", headers=intruder).status_code == 404
        assert client.get(f"{API}/clients/not-an-id", headers=auth_headers).status_code == 404

    def test_products_sorted_by_name(self, client, auth_headers):
        for name in ("Wax", "Conditioner"):
            client.post(f"{API}/products", json={"name": name, "price": 1200, "quantity": 3}, headers=auth_headers)
        names = [p["name"] for p in client.get(f"{API}/products", headers=auth_headers).json()]
        assert names == ["Conditioner", "Wax"]


class TestAppointments:
    def test_create_derives_from_service(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        resp = client.post(
            f"{API}/appointments", json={**refs, "start": "2024-01-01T10:00:00Z"}, headers=auth_headers
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["price"] == 5000
        assert body["service_name"] == "Haircut"
        assert body["client_name"] == "Ana"
        assert body["end"].startswith("2024-01-01T10:30:00")

    def test_conflict_returns_409_with_colliding_id(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        first = client.post(
            f"{API}/appointments",
            json={**refs, "start": "2024-01-01T10:00:00Z", "end": "2024-01-01T11:00:00Z"},
            headers=auth_headers,
        ).json()
        resp = client.post(
            f"{API}/appointments",
            json={**refs, "start": "2024-01-01T10:30:00Z", "end": "2024-01-01T11:30:00Z"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "scheduling_conflict"
        assert resp.json()["conflicting_appointment_id"] == first["id"]

        back_to_back = client.post(
            f"{API}/appointments",
            json={**refs, "start": "2024-01-01T11:00:00Z", "end": "2024-01-01T12:00:00Z"},
            headers=auth_headers,
        )
        assert back_to_back.status_code == 201

    def test_end_before_start_is_422_on_end(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        resp = client.post(
            f"{API}/appointments",
            json={**refs, "start": "2024-01-01T11:00:00Z", "end": "2024-01-01T10:00:00Z"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["errors"] == [{"field": "end", "message": "End time must be after start time"}]

    def test_unknown_reference_is_422(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        resp = client.post(
            f"{API}/appointments",
            json={**refs, "professional_id": "65a0c0ffee0000000000beef", "start": "2024-01-01T10:00:00Z"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json() == {
            "error": "unresolved_reference",
            "message": resp.json()["message"],
            "field": "professional_id",
        }

    def test_preview_reports_conflict_without_writing(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        booked = client.post(
            f"{API}/appointments", json={**refs, "start": "2024-01-01T10:00:00Z"}, headers=auth_headers
        ).json()
        preview = client.post(
            f"{API}/appointments/preview", json={**refs, "start": "2024-01-01T10:15:00Z"}, headers=auth_headers
        ).json()
        assert preview["ok"] is False
        assert preview["reason"] == "scheduling_conflict"
        assert preview["conflicting_appointment_id"] == booked["id"]

        as_edit = client.post(
            f"{API}/appointments/preview",
            params={"appointment_id": booked["id"]},
            json={**refs, "start": "2024-01-01T10:15:00Z"},
            headers=auth_headers,
        ).json()
        assert as_edit["ok"] is True
        assert as_edit["end"].startswith("2024-01-01T10:45:00")
        assert len(client.get(f"{API}/appointments", headers=auth_headers).json()["appointments"]) == 1

    def test_patch_get_delete(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        appt = client.post(
            f"{API}/appointments", json={**refs, "start": "2024-01-01T10:00:00Z"}, headers=auth_headers
        ).json()
        url = f"{API}/appointments/{appt['id']}"

        patched = client.patch(url, json={"attended": True}, headers=auth_headers)
        assert patched.status_code == 200
        assert patched.json()["attended"] is True
        assert client.patch(url, json={"client_id": None}, headers=auth_headers).status_code == 422

        assert client.get(url, headers=auth_headers).json()["attended"] is True
        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.delete(url, headers=auth_headers).status_code == 404

    def test_other_owner_cannot_see_or_touch(self, client, auth_headers):
        refs = make_catalog(client, auth_headers)
        appt = client.post(
            f"{API}/appointments", json={**refs, "start": "2024-01-01T10:00:00Z"}, headers=auth_headers
        ).json()
        intruder = register(client, "intruder@example.com")

        assert client.get(f"{API}/appointments", headers=intruder).json() == {"appointments": []}
        assert client.get(f"{API}/appointments/{appt['id']}", headers=intruder).status_code == 404
        resp = client.post(
            f"{API}/appointments",
            json={**refs, "start": "2024-01-02T10:00:00Z", "end": "2024-01-02T10:30:00Z", "price": 5000},
            headers=intruder,
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "unresolved_reference"


def test_financial_summary(client, auth_headers):
    entries = [
        {"description": "Cut", "amount": 5000, "type": "income", "entry_date": "2024-01-03"},
        {"description": "Color", "amount": 12000, "type": "income", "entry_date": "2024-01-31"},
        {"description": "Rent", "amount": 8000, "type": "expense", "entry_type": "recurring", "entry_date": "2024-01-05"},
        {"description": "Next month", "amount": 999, "type": "income", "entry_date": "2024-02-01"},
    ]
    for entry in entries:
        assert client.post(f"{API}/financial-entries", json=entry, headers=auth_headers).status_code == 201

    summary = client.get(f"{API}/financial-entries/summary", params={"year": 2024, "month": 1}, headers=auth_headers)
    assert summary.json() == {"year": 2024, "month": 1, "revenue": 17000, "expenses": 8000, "net_profit": 9000}
    assert client.get(f"{API}/financial-entries/summary", params={"year": 2024, "month": 13}, headers=auth_headers).status_code == 422

    listed = [e["entry_date"] for e in client.get(f"{API}/financial-entries", headers=auth_headers).json()]
    assert listed == ["2024-02-01", "2024-01-31", "2024-01-05", "2024-01-03"]


def test_business_hours(client, auth_headers):
    empty = client.get(f"{API}/settings/business-hours", headers=auth_headers).json()
    assert len(empty["days"]) == 7
    assert all(d["start_time"] is None for d in empty["days"])

    resp = client.put(
        f"{API}/settings/business-hours",
        json={"days": [{"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}]},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    stored = client.get(f"{API}/settings/business-hours", headers=auth_headers).json()["days"]
    assert stored[1] == {"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}
    assert stored[2]["start_time"] is None

    bad = client.put(
        f"{API}/settings/business-hours",
        json={"days": [{"day_of_week": 1, "start_time": "18:00", "end_time": "09:00"}]},
        headers=auth_headers,
    )
    assert bad.status_code == 422


def test_unknown_service_without_end_is_unresolved(client, auth_headers):
    refs = make_catalog(client, auth_headers)
    resp = client.post(
        f"{API}/appointments",
        json={**refs, "service_id": "65a000000000000000000000", "start": "2024-01-01T10:00:00Z"},
        headers=auth_headers,
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "unresolved_reference"
    assert resp.json()["field"] == "service_id"


def test_business_hours_survive_failed_write(client, auth_headers, monkeypatch):
    week = {"days": [{"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}]}
    assert client.put(f"{API}/settings/business-hours", json=week, headers=auth_headers).status_code == 200

    async def failing_insert_many(self, owner_id, records):
        raise TransportError()

    monkeypatch.setattr(OwnedRepository, "insert_many", failing_insert_many)
    resp = client.put(
        f"{API}/settings/business-hours",
        json={"days": [{"day_of_week": 2, "start_time": "10:00", "end_time": "16:00"}]},
        headers=auth_headers,
    )
    assert resp.status_code == 503
    stored = client.get(f"{API}/settings/business-hours", headers=auth_headers).json()["days"]
    assert stored[1] == {"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}
    assert stored[2]["start_time"] is None


def test_business_hours_replace_previous_week(client, auth_headers):
    client.put(
        f"{API}/settings/business-hours",
        json={"days": [{"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}]},
        headers=auth_headers,
    )
    client.put(
        f"{API}/settings/business-hours",
        json={"days": [{"day_of_week": 2, "start_time": "10:00", "end_time": "16:00"}]},
        headers=auth_headers,
    )
    stored = client.get(f"{API}/settings/business-hours", headers=auth_headers).json()["days"]
    assert stored[1]["start_time"] is None
    assert stored[2]["start_time"] == "10:00"
