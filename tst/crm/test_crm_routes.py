"""
API tests for the CRM admin endpoints: clients CRUD and inquiry linking.
"""
import pytest

from scalerebel.crm.database import Client, Inquiry


def create_client(client, headers, **fields):
    payload = {"name": "Harbor Bakery"}
    payload.update(fields)
    response = client.post("/api/admin/clients", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def make_inquiry(db, **fields):
    values = {"name": "Sam Reed", "email": "sam@reed.co", "message": "Hello there"}
    values.update(fields)
    inquiry = Inquiry(**values)
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)
    return inquiry


@pytest.mark.parametrize("method,path", [
    ("GET", "/api/admin/clients"),
    ("POST", "/api/admin/clients"),
    ("PUT", "/api/admin/clients"),
    ("DELETE", "/api/admin/clients"),
    ("GET", "/api/admin/inquiries"),
    ("POST", "/api/admin/inquiries/link"),
])
def test_admin_endpoints_require_session(client, method, path):
    response = client.request(method, path, json={"id": 1})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_invalid_token_is_rejected(client):
    response = client.get("/api/admin/clients", headers={"Authorization": "Bearer forged"})
    assert response.status_code == 401


def test_create_client_defaults_to_lead(client, auth_headers):
    created = create_client(client, auth_headers, email="owner@harbor.example", budget=4200.5)

    assert created["id"] > 0
    assert created["name"] == "Harbor Bakery"
    assert created["status"] == "lead"
    assert created["budget"] == 4200.5
    assert created["deadline"] is None


def test_create_client_requires_name(client, auth_headers):
    response = client.post("/api/admin/clients", json={"name": "  "}, headers=auth_headers)
    assert response.status_code == 400
    assert "error" in response.json()


def test_create_client_rejects_unknown_status(client, auth_headers):
    response = client.post(
        "/api/admin/clients",
        json={"name": "Harbor Bakery", "status": "pending"},
        headers=auth_headers
    )
    assert response.status_code == 400


def test_list_clients_newest_first(client, auth_headers):
    first = create_client(client, auth_headers, name="First")
    second = create_client(client, auth_headers, name="Second")

    response = client.get("/api/admin/clients", headers=auth_headers)

    assert response.status_code == 200
    ids = [c["id"] for c in response.json()["clients"]]
    assert ids == [second["id"], first["id"]]


def test_get_single_client_includes_inquiries(client, db, auth_headers):
    created = create_client(client, auth_headers)
    make_inquiry(db, client_id=created["id"])

    response = client.get(f"/api/admin/clients?id={created['id']}", headers=auth_headers)

    assert response.status_code == 200
    detail = response.json()["client"]
    assert detail["id"] == created["id"]
    assert len(detail["inquiries"]) == 1
    assert detail["inquiries"][0]["email"] == "sam@reed.co"


def test_get_missing_client_is_404(client, auth_headers):
    response = client.get("/api/admin/clients?id=999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Client not found"}


def test_update_client_changes_only_sent_fields(client, auth_headers):
    created = create_client(client, auth_headers, company="Harbor Co", notes="Met at market")

    response = client.put(
        "/api/admin/clients",
        json={"id": created["id"], "status": "active", "deadline": "2026-12-01", "cost": 950},
        headers=auth_headers
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "active"
    assert updated["deadline"] == "2026-12-01"
    assert updated["cost"] == 950
    assert updated["company"] == "Harbor Co"
    assert updated["notes"] == "Met at market"


def test_update_client_null_clears_optional_field(client, auth_headers):
    created = create_client(client, auth_headers, company="Harbor Co")

    response = client.put(
        "/api/admin/clients",
        json={"id": created["id"], "company": None, "name": None},
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["company"] is None
    assert response.json()["name"] == "Harbor Bakery"


def test_update_missing_client_is_404(client, auth_headers):
    response = client.put("/api/admin/clients", json={"id": 999, "name": "Ghost"}, headers=auth_headers)
    assert response.status_code == 404


def test_delete_client_unlinks_inquiries(client, db, auth_headers):
    created = create_client(client, auth_headers)
    inquiry = make_inquiry(db, client_id=created["id"])

    response = client.request("DELETE", "/api/admin/clients", json={"id": created["id"]}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}

    db.expire_all()
    assert db.query(Client).filter(Client.id == created["id"]).first() is None
    kept = db.query(Inquiry).filter(Inquiry.id == inquiry.id).one()
    assert kept.client_id is None


def test_delete_missing_client_is_404(client, auth_headers):
    response = client.request("DELETE", "/api/admin/clients", json={"id": 999}, headers=auth_headers)
    assert response.status_code == 404


def test_list_inquiries(client, db, auth_headers):
    older = make_inquiry(db, name="Older")
    newer = make_inquiry(db, name="Newer")

    response = client.get("/api/admin/inquiries", headers=auth_headers)

    assert response.status_code == 200
    ids = [i["id"] for i in response.json()["inquiries"]]
    assert ids == [newer.id, older.id]


def test_link_and_unlink_inquiry(client, db, auth_headers):
    created = create_client(client, auth_headers)
    inquiry = make_inquiry(db)

    linked = client.post(
        "/api/admin/inquiries/link",
        json={"inquiry_id": inquiry.id, "client_id": created["id"]},
        headers=auth_headers
    )
    assert linked.status_code == 200
    assert linked.json() == {"success": True}
    db.expire_all()
    assert db.query(Inquiry).filter(Inquiry.id == inquiry.id).one().client_id == created["id"]

    unlinked = client.post(
        "/api/admin/inquiries/link",
        json={"inquiry_id": inquiry.id, "client_id": None},
        headers=auth_headers
    )
    assert unlinked.status_code == 200
    db.expire_all()
    assert db.query(Inquiry).filter(Inquiry.id == inquiry.id).one().client_id is None


def test_link_unknown_ids_are_404(client, db, auth_headers):
    created = create_client(client, auth_headers)
    inquiry = make_inquiry(db)

    missing_inquiry = client.post(
        "/api/admin/inquiries/link",
        json={"inquiry_id": 999, "client_id": created["id"]},
        headers=auth_headers
    )
    missing_client = client.post(
        "/api/admin/inquiries/link",
        json={"inquiry_id": inquiry.id, "client_id": 999},
        headers=auth_headers
    )

    assert missing_inquiry.status_code == 404
    assert missing_client.status_code == 404
