from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from coffeediary_backend.app.config import Settings
from coffeediary_backend.app.main import create_app
from coffeediary_backend.app.schemas import Entry

PASSWORD = "secret-pass"


# --- Data tree override: every test gets its own sqlite file + media dir ---
@pytest.fixture(autouse=True)
def tmp_data_tree(tmp_path, monkeypatch):
    data = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(data))
    monkeypatch.setenv("COFFEEDIARY_BACKEND", "local")
    monkeypatch.delenv("COFFEEDIARY_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    return data


@pytest.fixture
def app(tmp_data_tree):
    return create_app(Settings.from_env())


@pytest.fixture
def backend(app):
    return app.state.backend


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def register(c: TestClient, email: str, nickname: str = "tester", password: str = PASSWORD) -> Dict:
    r = c.post("/auth/signup", json={"email": email, "password": password, "nickname": nickname})
    assert r.status_code == 200, r.text
    return r.json()


def login(c: TestClient, email: str, password: str = PASSWORD) -> Dict:
    r = c.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def signed_in(client) -> TestClient:
    """Client holding the session cookie of a freshly registered user."""
    register(client, "alice@example.com", nickname="alice")
    login(client, "alice@example.com")
    return client


@pytest.fixture
def other_client(app):
    """Second browser: a different signed-in identity on the same app."""
    with TestClient(app) as c:
        register(c, "bob@example.com", nickname="bob")
        login(c, "bob@example.com")
        yield c


@pytest.fixture
def png_bytes() -> Callable[[], bytes]:
    def make(color: str = "brown") -> bytes:
        buf = io.BytesIO()
        Image.new("RGB", (4, 4), color).save(buf, format="PNG")
        return buf.getvalue()
    return make


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Read-model entries for the aggregation tests; ids count up."""
    counter = {"n": 0}

    def make(**kw) -> Entry:
        counter["n"] += 1
        kw.setdefault("id", f"e{counter['n']}")
        kw.setdefault("user_id", "u1")
        kw.setdefault("bean_name", f"bean {counter['n']}")
        kw.setdefault("created_at", datetime(2024, 1, counter["n"], tzinfo=timezone.utc))
        return Entry(**kw)
    return make


@pytest.fixture
def register_user():
    return register


@pytest.fixture
def login_user():
    return login
