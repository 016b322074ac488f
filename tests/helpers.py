"""Shared helpers for the HTTP tests."""
from __future__ import annotations

import io
import json

PASSWORD = "correct-horse-1"


def image_file(name="avatar.png", content=b"\x89PNG\r\n\x1a\nfake"):
    return (io.BytesIO(content), name)


def set_cookies(response) -> dict:
    """Parse Set-Cookie headers into {name: raw header}."""
    cookies = {}
    for header in response.headers.getlist("Set-Cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies


def cookie_value(header: str) -> str:
    return header.split(";", 1)[0].split("=", 1)[1]


def post_json(client, url, body=None, headers=None):
    return client.post(url, data=json.dumps(body or {}), content_type="application/json", headers=headers)


def patch_json(client, url, body=None, headers=None):
    return client.patch(url, data=json.dumps(body or {}), content_type="application/json", headers=headers)


def login(client, username="alice", password=PASSWORD):
    resp = post_json(client, "/api/v1/auth/login", {"username": username, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
