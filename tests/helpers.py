import asyncio
from pathlib import Path

from fastapi.testclient import TestClient

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake jpeg body" * 8


def signup(client: TestClient, email: str, password: str = "p1") -> dict[str, str]:
    """Register a user and return the Authorization header for them."""
    response = client.post("/api/users/signup", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def image(name: str = "car.jpg", body: bytes = JPEG_BYTES):
    return ("images", (name, body, "image/jpeg"))


def create_car(
    client: TestClient,
    headers: dict[str, str],
    title: str = "Tesla Model 3",
    description: str = "Long range, white",
    tags: str = "electric, sedan",
    images=None,
):
    response = client.post(
        "/api/cars",
        data={"title": title, "description": description, "tags": tags},
        files=images if images is not None else [image()],
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def locator_path(uploads_dir: Path, locator: str) -> Path:
    return uploads_dir / locator.removeprefix("/uploads/")


def record_event_loop(monkeypatch, service, name: str, calls: list[str]):
    """
    Wrap a service method so each call appends whether it ran on the event
    loop thread ("<name> on loop") or in a worker thread ("<name>").
    """
    original = getattr(service, name)

    def wrapper(*args, **kwargs):
        try:
            asyncio.get_running_loop()
            calls.append(f"{name} on loop")
        except RuntimeError:
            calls.append(name)
        return original(*args, **kwargs)

    monkeypatch.setattr(service, name, wrapper)
