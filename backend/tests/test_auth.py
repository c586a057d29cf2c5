# tests/test_auth.py


def test_assembly_login_uses_assembly_name_as_password(client):
    r = client.post("/api/login", json={"assembly": "Emmanuel", "password": "emmanuel"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["role"] == "assembly"
    assert body["redirect"] == "/dashboard"
    assert body["userData"] == {"assembly": "EMMANUEL", "role": "assembly"}
    assert body["token"].startswith("auth_")


def test_wrong_password_or_unknown_assembly(client):
    r = client.post("/api/login", json={"assembly": "EMMANUEL", "password": "zion"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Invalid credentials"}

    r = client.post("/api/login", json={"assembly": "NOWHERE", "password": "nowhere"})
    assert r.status_code == 401


def test_admin_login(client):
    r = client.post(
        "/api/login",
        json={"loginType": "admin", "email": "Admin@Example.org", "password": "s3cret"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "admin"
    assert r.json()["redirect"] == "/admin/dashboard"

    r = client.post("/api/login", json={"loginType": "admin", "email": "admin@example.org", "password": "S3CRET"})
    assert r.status_code == 401


def test_logout_clears_cookies(client):
    r = client.post("/api/logout")
    assert r.status_code == 200
    assert r.json()["success"] is True
    cleared = r.headers.get_list("set-cookie")
    assert any(c.startswith("user-role=") for c in cleared)
    assert any(c.startswith("assembly-name=") for c in cleared)


def test_validate(client):
    token = client.post("/api/login", json={"assembly": "ZION", "password": "ZION"}).json()["token"]

    r = client.post("/api/auth/validate", json={"token": token, "userData": {"assembly": "ZION"}})
    assert r.status_code == 200
    assert r.json() == {"valid": True, "userData": {"assembly": "ZION"}}

    r = client.post("/api/auth/validate", json={"token": "nope"})
    assert r.status_code == 401
    assert r.json() == {"valid": False}
