from pinsanta.extensions import db
from pinsanta.models import Participant
from pinsanta.services.exclusions import is_excluded_pair
from pinsanta.services.registry import create_participant


def _login_player(client, pin):
    return client.post("/api/player/login", json={"pin": pin})


# --------- Admin ----------

def test_admin_endpoints_require_auth(client):
    assert client.get("/api/admin/participants").status_code == 401
    resp = client.get("/api/admin/participants", headers={"X-Admin-Pin": "nope"})
    assert resp.status_code == 401


def test_admin_login_session(client, admin_pin):
    assert client.post("/api/admin/login", json={"pin": "000000"}).status_code == 401
    assert client.post("/api/admin/login", json={"pin": admin_pin}).status_code == 200
    assert client.get("/api/admin/participants").status_code == 200

    client.post("/api/admin/logout")
    assert client.get("/api/admin/participants").status_code == 401


def test_admin_create_and_list(client, admin_headers):
    resp = client.post("/api/admin/participants", json={"name": "Alice", "pin": "1111"}, headers=admin_headers)
    assert resp.status_code == 201
    alice_id = resp.get_json()["id"]

    resp = client.post(
        "/api/admin/participants",
        json={"name": "Bob", "pin": "2222", "exclusion_ids": [alice_id]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    bob = resp.get_json()
    assert bob["name"] == "Bob"
    assert bob["has_target"] is False

    listing = client.get("/api/admin/participants", headers=admin_headers).get_json()
    assert [p["name"] for p in listing] == ["Alice", "Bob"]
    assert listing[0]["exclusion_ids"] == [bob["id"]]
    assert listing[1]["exclusion_names"] == ["Alice"]
    assert listing[0]["target_name"] is None


def test_admin_create_validation(client, admin_headers):
    resp = client.post("/api/admin/participants", json={"name": "", "pin": "1111"}, headers=admin_headers)
    assert resp.status_code == 400
    resp = client.post("/api/admin/participants", json={"name": "Al", "pin": "11a1"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "PIN must be exactly 4 digits"
    resp = client.post("/api/admin/participants", json={"name": "Al", "pin": 1111}, headers=admin_headers)
    assert resp.status_code == 400


def test_admin_create_duplicate_pin(client, admin_headers):
    client.post("/api/admin/participants", json={"name": "Eve", "pin": "1234"}, headers=admin_headers)
    resp = client.post("/api/admin/participants", json={"name": "Mallory", "pin": "1234"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "duplicate_pin"
    assert Participant.query.count() == 1


def test_admin_patch(client, admin_headers, trio):
    a, b, c = trio
    resp = client.patch(
        f"/api/admin/participants/{a.id}",
        json={"name": "Alicia", "exclusion_ids": [b.id]},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    db.session.expire_all()
    alice = db.session.get(Participant, a.id)
    assert alice.name == "Alicia"
    assert alice.pin == "1000"
    assert is_excluded_pair(b.id, a.id)

    # No exclusion_ids key: exclusions untouched.
    client.patch(f"/api/admin/participants/{a.id}", json={"pin": "4444"}, headers=admin_headers)
    db.session.expire_all()
    assert db.session.get(Participant, a.id).pin == "4444"
    assert is_excluded_pair(a.id, b.id)

    # Explicit empty list clears them.
    client.patch(f"/api/admin/participants/{a.id}", json={"exclusion_ids": []}, headers=admin_headers)
    assert not is_excluded_pair(a.id, b.id)


def test_admin_patch_errors(client, admin_headers, trio):
    a, b, _ = trio
    resp = client.patch(f"/api/admin/participants/{a.id}", json={"pin": b.pin}, headers=admin_headers)
    assert resp.status_code == 409

    resp = client.patch("/api/admin/participants/999", json={"name": "X"}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "unknown_participant"

    resp = client.patch(
        f"/api/admin/participants/{a.id}",
        json={"name": "Renamed", "exclusion_ids": [999]},
        headers=admin_headers,
    )
    assert resp.status_code == 404
    db.session.expire_all()
    assert db.session.get(Participant, a.id).name == "Alice"


def test_admin_exclusion_ids_must_be_int_list(client, admin_headers, trio):
    a, b, _ = trio
    client.patch(f"/api/admin/participants/{a.id}", json={"exclusion_ids": [b.id]}, headers=admin_headers)

    for bad in ["x", {"a": 1}, 5, [1, "2"], None, [True]]:
        resp = client.patch(
            f"/api/admin/participants/{a.id}",
            json={"name": "Renamed", "exclusion_ids": bad},
            headers=admin_headers,
        )
        assert resp.status_code == 400, bad
        assert resp.get_json()["error"] == "exclusion_ids must be a list of integers"

    db.session.expire_all()
    assert db.session.get(Participant, a.id).name == "Alice"
    assert is_excluded_pair(a.id, b.id)

    resp = client.post(
        "/api/admin/participants",
        json={"name": "Dave", "pin": "7777", "exclusion_ids": "x"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert Participant.query.count() == 3


def test_admin_delete_guard(client, admin_headers, make_participant):
    a = make_participant("A", pin="1111")
    b = make_participant("B", pin="2222")
    _login_player(client, "1111")
    client.post("/api/player/assign")

    resp = client.delete(f"/api/admin/participants/{b.id}", headers=admin_headers)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "referenced_as_target"

    resp = client.delete(f"/api/admin/participants/{a.id}", headers=admin_headers)
    assert resp.status_code == 200
    resp = client.delete(f"/api/admin/participants/{b.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert Participant.query.count() == 0


def test_admin_reset_assignments(client, admin_headers, trio):
    _login_player(client, trio[0].pin)
    client.post("/api/player/assign")
    resp = client.post("/api/admin/assignments/reset", headers=admin_headers)
    assert resp.get_json() == {"success": True, "cleared": 1}


# --------- Player ----------

def test_player_login(client, trio):
    a, _, _ = trio
    resp = _login_player(client, a.pin)
    assert resp.status_code == 200
    assert resp.get_json() == {"id": a.id, "name": "Alice", "has_target": False, "target_name": None}


def test_player_login_failures(client, trio):
    assert _login_player(client, "12").status_code == 400
    assert _login_player(client, "9999").status_code == 401


def test_player_assign_requires_login(client, trio):
    assert client.post("/api/player/assign").status_code == 401
    assert client.get("/api/player/me").status_code == 401


def test_player_assign_is_stable(client, trio):
    a, b, c = trio
    _login_player(client, a.pin)

    first = client.post("/api/player/assign")
    assert first.status_code == 200
    body = first.get_json()
    assert body["name"] == "Alice"
    assert body["target_name"] in {"Bob", "Carol"}

    second = client.post("/api/player/assign")
    assert second.get_json() == body

    me = client.get("/api/player/me").get_json()
    assert me["has_target"] is True
    assert me["target_name"] == body["target_name"]


def test_player_no_eligible_target(client, app):
    a = create_participant("A", "1111")
    create_participant("B", "2222", [a.id])
    _login_player(client, "1111")

    resp = client.post("/api/player/assign")
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "no_eligible_target"


def test_player_logout(client, trio):
    _login_player(client, trio[0].pin)
    client.post("/api/player/logout")
    assert client.get("/api/player/me").status_code == 401


def test_healthz(client, trio):
    assert client.get("/healthz").get_json() == {"status": "ok", "num_participants": 3}
