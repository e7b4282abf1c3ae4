from models import db
from models.users import User


def test_login_sets_cookie_and_returns_token(client, make_user):
    make_user("pilot", password="secret")

    response = client.post("/api/auth/login", json={"username": "pilot", "password": "secret"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["token"]
    assert data["user"]["role"] == "student"
    assert "access_token=" in response.headers.get("Set-Cookie", "")

    # the cookie alone authenticates later requests
    check = client.get("/api/auth/check-auth")
    assert check.status_code == 200
    assert check.get_json()["user"]["username"] == "pilot"


def test_login_bad_credentials(client, make_user):
    make_user("pilot", password="secret")
    response = client.post("/api/auth/login", json={"username": "pilot", "password": "wrong"})
    assert response.status_code == 401


def test_login_missing_fields(client):
    assert client.post("/api/auth/login", json={"username": "pilot"}).status_code == 400


def test_archived_user_cannot_log_in(client, make_user):
    make_user("retired", password="secret", archived=True)
    response = client.post("/api/auth/login", json={"username": "retired", "password": "secret"})
    assert response.status_code == 403


def test_logout_clears_cookie(client, make_user):
    make_user("pilot", password="secret")
    client.post("/api/auth/login", json={"username": "pilot", "password": "secret"})

    client.post("/api/auth/logout")
    assert client.get("/api/auth/check-auth").status_code == 401


def test_invalid_token(client):
    response = client.get("/api/auth/check-auth", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid token"


def test_role_required_rejects_other_roles(client, make_user, auth_headers):
    student = make_user("pilot")
    response = client.get("/api/admin/subjects", headers=auth_headers(student))
    assert response.status_code == 403


def test_change_password_clears_forced_change(client, make_user, auth_headers):
    user = make_user("pilot", password="pilot123")
    user.force_password_change = True
    db.session.commit()

    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "pilot123", "new_password": "new-secret"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    db.session.expire_all()
    user = db.session.get(User, user.id)
    assert user.force_password_change is False
    assert user.check_password("new-secret")


def test_change_password_requires_current_password(client, make_user, auth_headers):
    user = make_user("pilot", password="pilot123")
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "nope", "new_password": "new-secret"},
        headers=auth_headers(user),
    )
    assert response.status_code == 401


def test_change_password_too_short(client, make_user, auth_headers):
    user = make_user("pilot", password="pilot123")
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "pilot123", "new_password": "abc"},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
