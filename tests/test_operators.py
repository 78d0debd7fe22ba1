"""Operator PINs and station updates."""

from apps.operators.models import Operator
from apps.operators.services import OperatorDirectory, hash_pin, verify_pin


def test_pins_are_stored_as_bcrypt_hashes():
    stored = hash_pin("1234")
    assert stored.startswith("$2b$")
    assert "1234" not in stored
    assert verify_pin("1234", stored)
    assert not verify_pin("4321", stored)


def test_same_pin_hashes_differently():
    assert hash_pin("1234") != hash_pin("1234")


def test_malformed_stored_pin_never_matches():
    assert not verify_pin("1234", "")
    assert not verify_pin("1234", "abc$def")


def test_directory_authenticates_active_operators(context, operators):
    with context.session_factory() as db:
        directory = OperatorDirectory(db)
        assert directory.authenticate("op1", "1234").user_id == "op1"
        assert directory.authenticate("op1", "9999") is None
        assert directory.authenticate("retired", "0000") is None


def _ana(client, admin_headers):
    return client.get("/api/v1/operators/", params={"user_name": "Ana"}, headers=admin_headers).json()["items"][0]


def test_update_rejects_explicit_nulls(client, admin_headers):
    ana = _ana(client, admin_headers)
    for field in ("room", "desk", "user_name", "status", "pin"):
        resp = client.put(f"/api/v1/operators/{ana['id']}", json={field: None}, headers=admin_headers)
        assert resp.status_code == 422, field

    assert _ana(client, admin_headers)["room"] == "Sala 1"


def test_update_rejects_empty_station(client, admin_headers):
    ana = _ana(client, admin_headers)
    resp = client.put(f"/api/v1/operators/{ana['id']}", json={"desk": ""}, headers=admin_headers)
    assert resp.status_code == 422


def test_pin_change_is_rehashed(client, admin_headers, context):
    ana = _ana(client, admin_headers)
    resp = client.put(f"/api/v1/operators/{ana['id']}", json={"pin": "9876"}, headers=admin_headers)
    assert resp.status_code == 200

    with context.session_factory() as db:
        assert db.query(Operator).filter(Operator.user_id == "op1").one().pin.startswith("$2b$")

    assert client.post("/api/v1/auth/token", data={"username": "op1", "pin": "1234"}).status_code == 401
    assert client.post("/api/v1/auth/token", data={"username": "op1", "pin": "9876"}).status_code == 200
