import json
import os
from pathlib import Path

from conftest import employee_form

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _create(client, headers, files=None, **overrides):
    return client.post("/api/employees", data=employee_form(**overrides), files=files, headers=headers)


def test_employee_routes_require_auth(client):
    assert client.get("/api/employees").status_code == 401
    assert client.post("/api/employees", data=employee_form()).status_code == 401


def test_create_employee_with_image(client, auth_headers, settings):
    resp = _create(
        client,
        auth_headers,
        files={"profileImage": ("me.png", PNG_BYTES, "image/png")},
        faceDescriptor=json.dumps([0.12, -0.5, 0.33]),
    )
    assert resp.status_code == 201
    employee = resp.json()["employee"]
    assert employee["employeeId"] == "E1"
    assert employee["isActive"] is True
    assert employee["faceDescriptor"] == [0.12, -0.5, 0.33]
    assert employee["profileImage"].startswith("/uploads/profile-")
    assert employee["profileImage"].endswith(".png")

    stored = Path(settings.UPLOAD_DIR) / Path(employee["profileImage"]).name
    assert stored.read_bytes() == PNG_BYTES


def test_duplicate_email_is_rejected(client, auth_headers):
    assert _create(client, auth_headers).status_code == 201

    resp = _create(client, auth_headers, employeeId="E2")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Employee already exists"

    resp = _create(client, auth_headers, email="other@corp.com")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Employee ID already exists"

    assert len(client.get("/api/employees", headers=auth_headers).json()["employees"]) == 1


def test_create_employee_validation(client, auth_headers):
    resp = _create(client, auth_headers, email="not-an-email")
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "email"

    form = employee_form()
    del form["department"]
    resp = client.post("/api/employees", data=form, headers=auth_headers)
    assert resp.status_code == 400

    resp = _create(client, auth_headers, faceDescriptor="{not json")
    assert resp.status_code == 400


def test_rejects_bad_image_type_and_size(client, auth_headers):
    resp = _create(client, auth_headers, files={"profileImage": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400
    assert "Only images" in resp.json()["message"]

    big = b"\x89PNG" + b"\x00" * 2048
    resp = _create(client, auth_headers, files={"profileImage": ("big.png", big, "image/png")})
    assert resp.status_code == 400

    assert client.get("/api/employees", headers=auth_headers).json()["employees"] == []


def test_get_employee(client, auth_headers):
    employee_id = _create(client, auth_headers).json()["employee"]["id"]

    resp = client.get(f"/api/employees/{employee_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["employee"]["email"] == "minsu@corp.com"

    assert client.get("/api/employees/bad-id", headers=auth_headers).status_code == 400
    assert client.get("/api/employees/65f000000000000000000000", headers=auth_headers).status_code == 404


def test_update_employee_partial(client, auth_headers, settings):
    created = _create(
        client,
        auth_headers,
        files={"profileImage": ("a.png", PNG_BYTES, "image/png")},
    ).json()["employee"]

    resp = client.put(
        f"/api/employees/{created['id']}",
        data={"position": "Lead", "isActive": "false"},
        files={"profileImage": ("b.gif", b"GIF89a", "image/gif")},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    employee = resp.json()["employee"]
    assert employee["position"] == "Lead"
    assert employee["isActive"] is False
    assert employee["name"] == created["name"]
    assert employee["profileImage"].endswith(".gif")

    # 이전 이미지는 삭제됨
    assert not (Path(settings.UPLOAD_DIR) / Path(created["profileImage"]).name).exists()

    resp = client.put("/api/employees/65f000000000000000000000", data={"position": "X"}, headers=auth_headers)
    assert resp.status_code == 404
    resp = client.put("/api/employees/nope", data={"position": "X"}, headers=auth_headers)
    assert resp.status_code == 400


def test_delete_employee_removes_image(client, auth_headers, settings):
    created = _create(
        client,
        auth_headers,
        files={"profileImage": ("a.jpg", b"\xff\xd8\xff", "image/jpeg")},
    ).json()["employee"]
    stored = Path(settings.UPLOAD_DIR) / Path(created["profileImage"]).name
    assert stored.exists()

    resp = client.delete(f"/api/employees/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Employee deleted successfully"}
    assert not stored.exists()
    assert client.get(f"/api/employees/{created['id']}", headers=auth_headers).status_code == 404


def test_delete_employee_when_image_is_already_gone(client, auth_headers, settings):
    created = _create(
        client,
        auth_headers,
        files={"profileImage": ("a.png", PNG_BYTES, "image/png")},
    ).json()["employee"]
    (Path(settings.UPLOAD_DIR) / Path(created["profileImage"]).name).unlink()

    resp = client.delete(f"/api/employees/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert client.get("/api/employees", headers=auth_headers).json()["employees"] == []

    assert client.delete("/api/employees/bad", headers=auth_headers).status_code == 400
    assert client.delete(f"/api/employees/{created['id']}", headers=auth_headers).status_code == 404


def test_rejected_create_leaves_no_image_behind(client, auth_headers, settings):
    png = {"profileImage": ("a.png", PNG_BYTES, "image/png")}
    assert _create(client, auth_headers, files=png).status_code == 201
    before = sorted(os.listdir(settings.UPLOAD_DIR))

    resp = _create(
        client,
        auth_headers,
        files={"profileImage": ("b.png", PNG_BYTES, "image/png")},
        employeeId="E9",
    )
    assert resp.status_code == 400
    assert sorted(os.listdir(settings.UPLOAD_DIR)) == before


def test_rejected_update_leaves_no_image_behind(client, auth_headers, settings):
    assert _create(client, auth_headers).status_code == 201
    other = _create(client, auth_headers, email="other@corp.com", employeeId="E2").json()["employee"]
    before = sorted(os.listdir(settings.UPLOAD_DIR))

    resp = client.put(
        f"/api/employees/{other['id']}",
        data={"email": "minsu@corp.com"},
        files={"profileImage": ("c.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert sorted(os.listdir(settings.UPLOAD_DIR)) == before
