from .conftest import auth_header, registration_payload

URL = "/api/v1/registrations"


def test_create_registration(client):
    response = client.post(URL, json=registration_payload(email="  Asha@X.com "))
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["email"] == "asha@x.com"
    assert data["leagueType"] == "trial"
    assert data["status"] == "pending"
    assert data["documents"] == []
    assert data["registeredAt"]


def test_league_type_defaults_to_trial(client):
    payload = registration_payload()
    del payload["leagueType"]
    response = client.post(URL, json=payload)
    assert response.status_code == 201
    assert response.json()["data"]["leagueType"] == "trial"


def test_duplicate_email_for_same_league_is_rejected(client, admin_headers):
    first_id = client.post(URL, json=registration_payload()).json()["data"]["id"]

    response = client.post(URL, json=registration_payload(name="Someone Else"))
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "This email has already been registered for this league",
    }

    first = client.get(f"{URL}/{first_id}", headers=admin_headers).json()["data"]
    assert first["name"] == "Asha Patil"


def test_same_email_may_join_another_league(client):
    assert client.post(URL, json=registration_payload()).status_code == 201
    assert client.post(URL, json=registration_payload(leagueType="t20-2026")).status_code == 201


def test_validation_errors_are_reported_per_field(client):
    response = client.post(URL, json=registration_payload(age=40, mobile="12345"))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation Error"
    assert "Age must be between 10 and 30" in body["error"]
    assert "Mobile must be a valid 10-digit number" in body["error"]


def test_blank_district_is_rejected(client):
    response = client.post(URL, json=registration_payload(district="   "))
    assert response.status_code == 400
    assert "District is required" in response.json()["error"]


def test_unknown_cricket_role_is_rejected(client):
    response = client.post(URL, json=registration_payload(role="Umpire"))
    assert response.status_code == 400


def test_listing_requires_staff(client, admin_token):
    assert client.get(URL).status_code == 401

    client.post(
        "/api/v1/auth/register",
        json={"email": "player@x.com", "name": "Player", "password": "secret1"},
    )
    token = client.post(
        "/api/v1/auth/login", json={"email": "player@x.com", "password": "secret1"}
    ).json()["data"]["token"]
    response = client.get(URL, headers=auth_header(token))
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_pagination(client, admin_headers, register):
    for i in range(25):
        register(email=f"player{i}@x.com")

    response = client.get(URL, params={"page": 2, "limit": 10}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 10
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "pages": 3}

    last = client.get(URL, params={"page": 3, "limit": 10}, headers=admin_headers).json()
    assert len(last["data"]) == 5


def test_default_order_is_newest_first(client, admin_headers, register):
    register(email="first@x.com")
    register(email="second@x.com")
    data = client.get(URL, headers=admin_headers).json()["data"]
    assert [r["email"] for r in data] == ["second@x.com", "first@x.com"]


def test_sort_and_filters(client, admin_headers, register):
    register(email="c@x.com", name="Charlie", leagueType="t20-2026")
    register(email="a@x.com", name="Alpha", leagueType="t20-2026")
    register(email="b@x.com", name="Bravo", leagueType="trial")

    response = client.get(
        URL,
        params={"sort": "name", "order": "asc", "leagueType": "t20-2026"},
        headers=admin_headers,
    )
    assert [r["name"] for r in response.json()["data"]] == ["Alpha", "Charlie"]

    response = client.get(URL, params={"status": "approved"}, headers=admin_headers)
    assert response.json()["data"] == []


def test_unknown_sort_field_is_a_validation_error(client, admin_headers):
    response = client.get(URL, params={"sort": "password"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Validation Error"


def test_limit_is_bounded(client, admin_headers):
    assert client.get(URL, params={"limit": 101}, headers=admin_headers).status_code == 400
    assert client.get(URL, params={"page": 0}, headers=admin_headers).status_code == 400


def test_get_unknown_registration(client, admin_headers):
    response = client.get(f"{URL}/missing", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Registration not found"


def test_update_status(client, admin_headers, register):
    registration_id = register()
    response = client.patch(
        f"{URL}/{registration_id}/status", json={"status": "approved"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "approved"


def test_update_status_rejects_unknown_value(client, admin_headers, register):
    registration_id = register()
    response = client.patch(
        f"{URL}/{registration_id}/status", json={"status": "archived"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status. Must be pending, approved, or rejected"


def test_delete_is_admin_only(client, admin_headers, register):
    registration_id = register()
    client.post(
        "/api/v1/auth/register",
        json={"email": "mod@x.com", "name": "Mod", "password": "secret1", "role": "moderator"},
        headers=admin_headers,
    )
    mod_token = client.post(
        "/api/v1/auth/login", json={"email": "mod@x.com", "password": "secret1"}
    ).json()["data"]["token"]
    mod_headers = auth_header(mod_token)

    # Moderators can read but not delete.
    assert client.get(f"{URL}/{registration_id}", headers=mod_headers).status_code == 200
    assert client.delete(f"{URL}/{registration_id}", headers=mod_headers).status_code == 403

    response = client.delete(f"{URL}/{registration_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get(f"{URL}/{registration_id}", headers=admin_headers).status_code == 404
    assert client.delete(f"{URL}/{registration_id}", headers=admin_headers).status_code == 404
