import random
import string

import pytest
from httpx import AsyncClient

# Garbage, injection and XSS payloads thrown at the login endpoint.


def generate_garbage(length=100):
    return "".join(random.choices(string.ascii_letters + string.digits + "!@#$%^&*()", k=length))


def generate_sql_injection():
    payloads = ["' OR '1'='1", "'; DROP TABLE users--", "admin'--", "' UNION SELECT 1,2,3--"]
    return random.choice(payloads)


def generate_xss():
    payloads = ["<script>alert(1)</script>", "<img src=x onerror=alert(1)>", "javascript:alert(1)"]
    return random.choice(payloads)


@pytest.mark.asyncio
async def test_login_fuzz_never_crashes(async_client: AsyncClient, make_user):
    """Random credentials must always fail with the generic 400, never a 500."""
    await make_user()
    for i in range(40):
        email = generate_garbage(random.randint(1, 80)) + "@test.com"
        password = generate_garbage(random.randint(1, 100))
        if i % 5 == 0:
            email = generate_sql_injection()
        if i % 7 == 0:
            password = generate_xss()

        resp = await async_client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 400, f"Login misbehaved with {email!r}"
        assert resp.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_injection_does_not_drop_tables(async_client: AsyncClient, make_user, login):
    await make_user()
    await async_client.post(
        "/api/v1/auth/login", json={"email": "'; DROP TABLE users--", "password": "x"}
    )
    assert (await login("ada@example.com")).status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_types(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/login", json={"email": ["a"], "password": 1})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
