from __future__ import annotations


def test_guest_socket_gets_state_and_closes(client):
    with client.websocket_connect("/auth/events") as ws:
        assert ws.receive_json() == {"state": "unauthenticated", "user": None}


def test_signed_in_socket_follows_sign_out(signed_in):
    with signed_in.websocket_connect("/auth/events") as ws:
        first = ws.receive_json()
        assert first["state"] == "authenticated"
        assert first["user"]["email"] == "alice@example.com"

        signed_in.post("/auth/logout")
        assert ws.receive_json() == {"event": "SIGNED_OUT", "state": "unauthenticated"}


def test_other_users_events_do_not_reach_socket(signed_in, other_client):
    with signed_in.websocket_connect("/auth/events") as ws:
        assert ws.receive_json()["state"] == "authenticated"
        other_client.post("/auth/logout")
        signed_in.post("/auth/logout")
        # only our own sign-out arrives
        assert ws.receive_json()["event"] == "SIGNED_OUT"
