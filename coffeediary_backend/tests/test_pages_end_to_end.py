# coffeediary_backend/tests/test_pages_end_to_end.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from urllib.parse import urlsplit

import pytest

from coffeediary_backend.app.schemas import EntryCreate
from coffeediary_backend.app.utils import uploads


def _record(c, **fields):
    data = {"bean_name": "Guji", "rating": "4"}
    data.update(fields)
    return c.post("/record", data=data)


# ---------- guard ----------

@pytest.mark.parametrize("path", ["/", "/record", "/entries", "/entries/x", "/dashboard", "/profile"])
def test_pages_redirect_to_auth_when_signed_out(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"


def test_auth_page_for_guests_and_redirect_for_members(client, register_user, login_user):
    r = client.get("/auth")
    assert r.status_code == 200
    body = r.json()
    assert body["loading"] is False and body["error"] is None
    assert body["state"] == "unauthenticated"

    register_user(client, "zoe@example.com")
    login_user(client, "zoe@example.com")
    r = client.get("/auth", follow_redirects=False)
    assert r.status_code == 303 and r.headers["location"] == "/"


def test_bearer_header_works_without_cookie(client, register_user, login_user):
    register_user(client, "bea@example.com")
    token = login_user(client, "bea@example.com")["access_token"]
    client.cookies.clear()
    r = client.get("/", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


# ---------- auth ----------

def test_signup_validation_and_provider_errors(client, register_user):
    r = client.post("/auth/signup", json={"email": "x@example.com", "password": "hunter22", "nickname": "n" * 21})
    assert r.status_code == 422
    assert r.json()["field"] == "nickname"

    r = client.post("/auth/signup", json={"email": "x@example.com", "password": "123", "nickname": "x"})
    assert r.status_code == 400
    assert r.json()["code"] == "weak_password"

    register_user(client, "x@example.com")
    r = client.post("/auth/signup", json={"email": "x@example.com", "password": "hunter22", "nickname": "x"})
    assert r.status_code == 400
    assert r.json()["error"] == "このメールアドレスは既に登録されています。"


def test_signup_message_has_no_redirect(client, register_user):
    body = register_user(client, "new@example.com")
    assert body["message"] == "登録が完了しました。ログインしてください。"
    assert body["next_mode"] == "login"
    assert "redirect" not in body


def test_wrong_password_is_401_with_localized_message(client, register_user):
    register_user(client, "w@example.com")
    r = client.post("/auth/login", json={"email": "w@example.com", "password": "bad-password"})
    assert r.status_code == 401
    assert r.json()["error"] == "メールアドレスまたはパスワードが正しくありません。"
    assert r.json()["code"] == "invalid_credentials"


def test_login_redirects_to_profile_until_profile_complete(client, register_user, login_user):
    register_user(client, "p@example.com", nickname="pat")
    assert login_user(client, "p@example.com")["redirect"] == "/profile"

    r = client.post("/profile", data={"nickname": "pat", "bio": "morning pour-over", "favorite_types": ["浅煎り"]})
    assert r.status_code == 200
    assert login_user(client, "p@example.com")["redirect"] == "/"


def test_logout_clears_session(signed_in):
    r = signed_in.post("/auth/logout")
    assert r.status_code == 200
    assert r.json()["redirect"] == "/auth"
    r = signed_in.get("/", follow_redirects=False)
    assert r.status_code == 303


def test_password_reset(client):
    r = client.post("/auth/password-reset", json={"email": "  "})
    assert r.status_code == 422
    assert r.json()["error"] == "メールアドレスを入力してください。"
    r = client.post("/auth/password-reset", json={"email": "someone@example.com"})
    assert r.status_code == 200
    assert "パスワード再設定用メール" in r.json()["message"]


# ---------- home ----------

def test_home_shows_nav_and_five_recent(signed_in):
    for i in range(7):
        assert _record(signed_in, bean_name=f"bean {i}").status_code == 201
    body = signed_in.get("/").json()
    assert body["nav"]["nickname"] == "alice"
    assert body["nav"]["avatar_url"] is None
    assert [e["bean_name"] for e in body["recent_entries"]] == [f"bean {i}" for i in range(6, 1, -1)]


# ---------- record ----------

def test_record_form_options(signed_in):
    body = signed_in.get("/record").json()
    assert body["roast_levels"] == ["浅煎り", "中浅煎り", "中煎り", "中深煎り", "深煎り"]
    assert "ベリー系" in body["flavor_notes"]
    assert body["defaults"]["rating"] == 3 and body["defaults"]["sourness"] == 3


def test_record_requires_bean_name(signed_in):
    r = _record(signed_in, bean_name="   ")
    assert r.status_code == 422
    assert r.json() == {"loading": False, "error": "豆の名前を入力してください", "field": "bean_name"}


def test_record_rejects_out_of_range_scores_and_unknown_roast(signed_in):
    assert _record(signed_in, rating="6").json()["field"] == "rating"
    assert _record(signed_in, sourness="0").json()["field"] == "sourness"
    assert _record(signed_in, roast_level="burnt").json()["field"] == "roast_level"


def test_record_full_entry(signed_in):
    r = _record(
        signed_in,
        bean_origin="Ethiopia",
        roast_level="浅煎り",
        shop="Corner Roasters",
        brew_method="V60",
        made_by_user="false",
        grind_size="medium-fine",
        sweetness="5",
        flavor_notes=["ベリー系", "フローラル"],
        custom_flavor=" jasmine ",
        memo="bright",
    )
    assert r.status_code == 201
    entry = r.json()["entry"]
    assert entry["made_by_user"] is False
    assert entry["grind_size"] is None
    assert entry["flavor_notes"] == ["ベリー系", "フローラル", "jasmine"]
    assert entry["sweetness"] == 5 and entry["bitterness"] == 3
    assert entry["photos"] == []
    assert r.json()["redirect"] == "/"


def _as_utc(dt):
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def test_local_store_saves_timestamps_as_utc(backend):
    backend.identity.sign_up("tz@example.com", "hunter22", "tz")
    session = backend.identity.sign_in("tz@example.com", "hunter22")
    store = backend.connect(session.access_token).entries
    uid = session.user.id

    jst = timezone(timedelta(hours=9))
    store.insert_entry(uid, EntryCreate(bean_name="aware"), created_at=datetime(2024, 6, 1, 0, 30, tzinfo=jst))
    store.insert_entry(uid, EntryCreate(bean_name="naive"), created_at=datetime(2024, 6, 2, 8, 0))

    stamps = {e.bean_name: _as_utc(e.created_at) for e in store.list_entries(uid)}
    assert stamps["aware"] == datetime(2024, 5, 31, 15, 30, tzinfo=timezone.utc)
    assert stamps["naive"] == datetime(2024, 6, 2, 8, 0, tzinfo=timezone.utc)


def test_recorded_entry_counts_this_month(signed_in):
    r = _record(signed_in)
    assert r.status_code == 201, r.text
    assert signed_in.get("/dashboard").json()["stats"]["this_month"] == 1


def test_record_with_photo_uploads_first(signed_in, png_bytes, tmp_data_tree):
    r = signed_in.post(
        "/record",
        data={"bean_name": "Huila"},
        files={"photo": ("my cup.png", png_bytes(), "image/png")},
    )
    assert r.status_code == 201, r.text
    entry = r.json()["entry"]
    url = entry["photos"][0]
    path = urlsplit(url).path
    assert path.startswith(f"/media/coffee-photos/{entry['user_id']}/")
    assert path.endswith("-my_cup.png")
    stored = list((tmp_data_tree / "media" / "coffee-photos" / entry["user_id"]).iterdir())
    assert len(stored) == 1

    served = signed_in.get(path)
    assert served.status_code == 200
    assert served.content == png_bytes()


def test_record_rejects_non_image(signed_in):
    r = signed_in.post(
        "/record",
        data={"bean_name": "Huila"},
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 422
    assert r.json()["field"] == "photo"


# ---------- entries ----------

def _seed_entries(c):
    _record(c, bean_name="Yirgacheffe", bean_origin="Ethiopia", roast_level="浅煎り", brew_method="V60", rating="4")
    _record(c, bean_name="Huila", bean_origin="Colombia", roast_level="中煎り", brew_method="Aeropress", rating="3")
    _record(c, bean_name="Guji", bean_origin="Ethiopia", roast_level="中煎り", brew_method="V60", rating="5")


def test_entries_list_filters_and_counts(signed_in):
    _seed_entries(signed_in)
    body = signed_in.get("/entries").json()
    assert [e["bean_name"] for e in body["entries"]] == ["Guji", "Huila", "Yirgacheffe"]
    assert body["shown"] == 3 and body["total"] == 3
    assert body["options"]["origins"] == ["Ethiopia", "Colombia"]
    assert body["options"]["brew_methods"] == ["V60", "Aeropress"]

    body = signed_in.get("/entries", params={"origin": "Ethiopia", "sort": "rating"}).json()
    assert [e["bean_name"] for e in body["entries"]] == ["Guji", "Yirgacheffe"]
    assert body["summary"] == "2件表示 / 全3件"

    body = signed_in.get("/entries", params={"q": "hui", "min_rating": 3}).json()
    assert [e["bean_name"] for e in body["entries"]] == ["Huila"]


def test_entries_bad_query_is_rejected(signed_in):
    assert signed_in.get("/entries", params={"min_rating": 9}).status_code == 422
    assert signed_in.get("/entries", params={"sort": "price"}).status_code == 422


def test_entry_detail_and_not_found(signed_in, other_client):
    entry = _record(signed_in, bean_name="Kenya AA").json()["entry"]
    body = signed_in.get(f"/entries/{entry['id']}").json()
    assert body["entry"]["bean_name"] == "Kenya AA"
    assert [t["label"] for t in body["tastes"]] == ["酸味", "甘味", "苦味", "コク"]

    r = signed_in.get("/entries/does-not-exist")
    assert r.status_code == 404
    assert r.json()["error"] == "記録が見つかりません"

    # owner-only: another identity cannot read it
    assert other_client.get(f"/entries/{entry['id']}").status_code == 404
    assert other_client.get("/entries").json()["total"] == 0


# ---------- dashboard ----------

def test_dashboard_placeholder_below_three(signed_in):
    body = signed_in.get("/dashboard").json()
    assert body["stats"]["avg_rating"] == "0.0"
    assert body["stats"]["top_method"] == "なし"
    assert body["trends"] is None
    assert "3件以上推奨" in body["placeholder"]


def test_dashboard_with_entries(signed_in):
    _seed_entries(signed_in)
    body = signed_in.get("/dashboard").json()
    stats = body["stats"]
    assert stats["total"] == 3
    assert stats["avg_rating"] == "4.0"
    assert stats["top_method"] == "V60"
    assert stats["top_origin"] == "Ethiopia"
    assert stats["this_month"] == 3
    assert body["placeholder"] is None
    assert sum(body["trends"]["roast_levels"]["data"]) == 3
    assert len(body["trends"]["monthly"]["labels"]) == 6
    assert len(body["recent_entries"]) == 3


# ---------- profile ----------

def test_profile_view_has_defaults_and_vocabulary(signed_in):
    body = signed_in.get("/profile").json()
    assert body["profile"]["nickname"] == "alice"
    assert body["profile"]["favorite_types"] == []
    assert body["incomplete"] is True
    assert "ハンドドリップ" in body["coffee_types"]


def test_profile_validation(signed_in):
    r = signed_in.post("/profile", data={"nickname": ""})
    assert r.status_code == 422 and r.json()["field"] == "nickname"
    r = signed_in.post("/profile", data={"nickname": "a", "bio": "x" * 101})
    assert r.status_code == 422 and r.json()["field"] == "bio"
    r = signed_in.post("/profile", data={"nickname": "a", "favorite_types": ["紅茶"]})
    assert r.status_code == 422 and r.json()["field"] == "favorite_types"


def test_avatar_replacement_removes_old_object(signed_in, png_bytes, tmp_data_tree, monkeypatch):
    ticks = count(1_700_000_000_000)
    monkeypatch.setattr(uploads, "now_ms", lambda: next(ticks))

    first = signed_in.post(
        "/profile",
        data={"nickname": "alice", "bio": "hi", "favorite_types": ["深煎り"]},
        files={"avatar": ("me.PNG", png_bytes("red"), "image/png")},
    ).json()["profile"]
    assert first["avatar_url"].endswith(".png")
    user_dir = tmp_data_tree / "media" / "avatars" / first["id"]
    assert [p.name for p in user_dir.iterdir()] == [Path(urlsplit(first["avatar_url"]).path).name]

    second = signed_in.post(
        "/profile",
        data={"nickname": "alice", "bio": "hi", "favorite_types": ["深煎り"]},
        files={"avatar": ("me2.png", png_bytes("blue"), "image/png")},
    ).json()["profile"]
    assert second["avatar_url"] != first["avatar_url"]
    assert [p.name for p in user_dir.iterdir()] == [Path(urlsplit(second["avatar_url"]).path).name]

    # saving without a file keeps the current avatar
    third = signed_in.post("/profile", data={"nickname": "alice2", "bio": "hi"}).json()["profile"]
    assert third["avatar_url"] == second["avatar_url"]
    assert signed_in.get("/").json()["nav"]["avatar_url"] == second["avatar_url"]


def test_health_reports_backend(client):
    r = client.get("/health")
    assert r.json() == {"ok": True, "backend": "local", "config": "ok"}
