"""
Request helpers shared by the HTTP tests.
"""

from typing import Tuple

from httpx import AsyncClient


async def register(
    client: AsyncClient,
    email: str = "a@x.com",
    password: str = "abcdefg",
    name: str = "Alice",
    **extra,
) -> Tuple[dict, str]:
    """Register a user through the API and return (user, token)."""
    resp = await client.post(
        "/users",
        json={"name": name, "email": email, "password": password, **extra},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"], body["token"]


async def login(client: AsyncClient, email: str = "a@x.com", password: str = "abcdefg") -> str:
    resp = await client.post("/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


async def add_task(client: AsyncClient, token: str, description: str, completed: bool = False) -> dict:
    resp = await client.post(
        "/tasks",
        json={"description": description, "completed": completed},
        headers=bearer(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
