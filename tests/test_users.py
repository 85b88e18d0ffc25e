"""
Signup and login over HTTP.
"""

from jose import jwt
from sqlmodel import select

from carlot.models.schema import User
from helpers import record_event_loop, signup


def decode_sub(token: str, config) -> int:
    claims = jwt.decode(token, config.auth.secret, algorithms=[config.auth.algorithm])
    return int(claims["sub"])


def test_signup_returns_token(client):
    response = client.post(
        "/api/users/signup", json={"email": "a@x.com", "password": "p1"}
    )

    assert response.status_code == 200
    assert response.json()["token"]


def test_distinct_signups_get_distinct_identities(client, config):
    tokens = [
        client.post(
            "/api/users/signup", json={"email": f"user{i}@x.com", "password": "p1"}
        ).json()["token"]
        for i in range(3)
    ]

    assert len({decode_sub(token, config) for token in tokens}) == 3


def test_duplicate_signup_rejected_without_second_record(client, app):
    signup(client, "a@x.com")

    response = client.post(
        "/api/users/signup", json={"email": "a@x.com", "password": "other"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Email is already in use"
    with app.state.database.session() as session:
        users = session.exec(select(User).where(User.email == "a@x.com")).all()
    assert len(users) == 1


def test_email_match_is_case_sensitive(client):
    signup(client, "a@x.com")

    response = client.post(
        "/api/users/signup", json={"email": "A@x.com", "password": "p1"}
    )

    assert response.status_code == 200


def test_password_is_not_stored_in_plaintext(client, app):
    signup(client, "a@x.com", password="hunter2")

    with app.state.database.session() as session:
        user = session.exec(select(User)).one()
    assert "hunter2" not in user.password_hash
    assert user.password_hash.startswith("scrypt$")


def test_signup_then_login_decodes_to_same_user(client, config):
    signup_token = client.post(
        "/api/users/signup", json={"email": "a@x.com", "password": "p1"}
    ).json()["token"]

    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "p1"})

    assert response.status_code == 200
    assert decode_sub(response.json()["token"], config) == decode_sub(signup_token, config)


def test_login_wrong_password(client):
    signup(client, "a@x.com")

    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "nope"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid credentials"


def test_login_unknown_email_looks_like_wrong_password(client):
    response = client.post("/api/users/login", json={"email": "ghost@x.com", "password": "p1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid credentials"


def test_signup_missing_fields(client):
    response = client.post("/api/users/signup", json={"email": "a@x.com"})

    assert response.status_code == 400


def test_homepage(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "This is Homepage"


def test_duplicate_signup_caught_by_unique_index(client, app, monkeypatch):
    signup(client, "a@x.com")
    # Another request commits the same email after our lookup ran
    monkeypatch.setattr(app.state.credentials, "_find_by_email", lambda session, email: None)

    response = client.post(
        "/api/users/signup", json={"email": "a@x.com", "password": "other"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Email is already in use"
    with app.state.database.session() as session:
        users = session.exec(select(User).where(User.email == "a@x.com")).all()
    assert len(users) == 1


def test_password_hashing_runs_off_event_loop(client, app, monkeypatch):
    calls = []
    record_event_loop(monkeypatch, app.state.credentials, "signup", calls)
    record_event_loop(monkeypatch, app.state.credentials, "login", calls)

    signup(client, "a@x.com")
    client.post("/api/users/login", json={"email": "a@x.com", "password": "p1"})

    assert calls == ["signup", "login"]
