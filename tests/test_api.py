import json
import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from backend.crypto import (
    base64url_decode, base64url_encode, generate_rsa_keypair,
    load_public_key, oaep_decrypt, public_key_to_der,
)
from server.app import create_app
from server.config import Settings


def _pubkey_b64u(pubkey):
    return base64url_encode(public_key_to_der(pubkey))


def _challenge(client, pubkey):
    r = client.post("/challenge", json={"pubkey": _pubkey_b64u(pubkey)})
    assert r.status_code == 200
    return r.json()


def _answer(priv_pem, body, name):
    revealed = oaep_decrypt(priv_pem, base64url_decode(body["challenge"]))
    return {"response": base64url_encode(revealed), "state": body["state"],
            "nonce": body["nonce"], "name": name}


def test_end_to_end(client, keypair_a, pubkey_a):
    body = _challenge(client, pubkey_a)
    assert set(body) == {"challenge", "state", "nonce"}
    answer = _answer(keypair_a[0], body, "alice")

    r = client.post("/response", json=answer)
    assert r.status_code == 201
    assert r.content == b""

    r = client.post("/response", json=answer)
    assert r.status_code == 409
    assert r.json() == {"error": "name taken"}

    # wrong proof for the taken name is refused before the store is consulted
    wrong = dict(answer, response=base64url_encode(os.urandom(32)))
    r = client.post("/response", json=wrong)
    assert r.status_code == 400
    assert r.json() == {"error": "failed challenge"}

    r = client.get("/key/alice")
    assert r.status_code == 200
    assert base64url_decode(r.json()["pubkey"]) == public_key_to_der(pubkey_a)

    r = client.get("/key/bob")
    assert r.status_code == 404
    assert r.json() == {"error": "not found"}


def test_undecodable_fields_fail_the_challenge(client, keypair_a, pubkey_a):
    answer = _answer(keypair_a[0], _challenge(client, pubkey_a), "alice")
    for field in ("response", "state", "nonce"):
        r = client.post("/response", json=dict(answer, **{field: "*not base64*"}))
        assert r.status_code == 400
        assert r.json() == {"error": "failed challenge"}
    assert client.get("/key/alice").status_code == 404


def test_missing_fields_are_bad_request(client):
    r = client.post("/response", json={"response": "AAAA"})
    assert r.status_code == 400
    assert r.json() == {"error": "bad request"}
    r = client.post("/challenge", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_unusable_public_keys_are_refused(client):
    small_priv, small_pub = generate_rsa_keypair(1024)
    ec_der = ec.generate_private_key(ec.SECP256R1()).public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    candidates = ("AAAA", "*", _pubkey_b64u(load_public_key(small_pub)), base64url_encode(ec_der))
    for pubkey in candidates:
        r = client.post("/challenge", json={"pubkey": pubkey})
        assert r.status_code == 400
        assert r.json() == {"error": "invalid public key"}


def test_stored_key_is_the_challenged_key(client, keypair_a, keypair_b, pubkey_a):
    # a key smuggled into the response body is ignored; the sealed one is stored
    answer = _answer(keypair_a[0], _challenge(client, pubkey_a), "erin")
    answer["pubkey"] = _pubkey_b64u(load_public_key(keypair_b[1]))
    assert client.post("/response", json=answer).status_code == 201
    stored = base64url_decode(client.get("/key/erin").json()["pubkey"])
    assert stored == public_key_to_der(pubkey_a)


def test_restart_invalidates_outstanding_challenges(tmp_path, keypair_a, pubkey_a):
    settings = Settings(database_path=str(tmp_path / "keys.sqlite"))
    with TestClient(create_app(settings)) as first:
        answer = _answer(keypair_a[0], _challenge(first, pubkey_a), "frank")
    with TestClient(create_app(settings)) as second:
        r = second.post("/response", json=answer)
        assert r.status_code == 400
        assert r.json() == {"error": "failed challenge"}


def test_sqlite_backed_app_persists_across_restart(tmp_path, keypair_a, pubkey_a):
    settings = Settings(database_path=str(tmp_path / "keys.sqlite"))
    with TestClient(create_app(settings)) as first:
        answer = _answer(keypair_a[0], _challenge(first, pubkey_a), "grace")
        assert first.post("/response", json=answer).status_code == 201
    with TestClient(create_app(settings)) as second:
        r = second.get("/key/grace")
        assert r.status_code == 200
        assert base64url_decode(r.json()["pubkey"]) == public_key_to_der(pubkey_a)


def test_names_with_slashes_can_be_looked_up(client, keypair_a, pubkey_a):
    answer = _answer(keypair_a[0], _challenge(client, pubkey_a), "a/b")
    assert client.post("/response", json=answer).status_code == 201
    r = client.get("/key/a%2Fb")
    assert r.status_code == 200
    assert base64url_decode(r.json()["pubkey"]) == public_key_to_der(pubkey_a)
    r = client.get("/key/a%2Fc")
    assert r.status_code == 404
    assert r.json() == {"error": "not found"}


def test_unencodable_name_is_a_clean_insert_failure(tmp_path, keypair_a, pubkey_a):
    settings = Settings(database_path=str(tmp_path / "keys.sqlite"))
    with TestClient(create_app(settings)) as c:
        answer = _answer(keypair_a[0], _challenge(c, pubkey_a), "\ud800")
        # json.dumps escapes the lone surrogate, so the body itself is valid
        r = c.post("/response", content=json.dumps(answer).encode("ascii"),
                   headers={"content-type": "application/json"})
        assert r.status_code == 500
        assert r.json() == {"error": "could not insert"}
