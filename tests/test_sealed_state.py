import pytest

from backend.crypto import (
    AEAD_NONCE_LEN, InvalidState, SealedState,
    generate_server_key, open_state, seal_state, stabilise_json,
)
from backend.crypto.sealed_state import CHALLENGE_NONCE_LEN
from cryptography.hazmat.primitives.ciphers.aead import AESGCM


def _state(pubkey):
    return SealedState(challenge_nonce=bytes(range(CHALLENGE_NONCE_LEN)), pubkey=pubkey)


def test_open_inverts_seal(server_key, pubkey_a):
    state = _state(pubkey_a)
    ct, nonce = seal_state(server_key, state)
    assert len(nonce) == AEAD_NONCE_LEN
    assert open_state(server_key, ct, nonce) == state


def test_each_seal_uses_a_fresh_nonce(server_key, pubkey_a):
    state = _state(pubkey_a)
    (ct1, n1), (ct2, n2) = seal_state(server_key, state), seal_state(server_key, state)
    assert n1 != n2
    assert ct1 != ct2


@pytest.mark.parametrize("length", [0, 8, 11, 13, 16])
def test_wrong_nonce_length(server_key, pubkey_a, length):
    ct, _ = seal_state(server_key, _state(pubkey_a))
    with pytest.raises(InvalidState):
        open_state(server_key, ct, b"\x00" * length)


def test_every_bit_flip_fails_closed(server_key, pubkey_a):
    ct, nonce = seal_state(server_key, _state(pubkey_a))
    # sampled body bytes plus every tag byte
    for i in list(range(0, len(ct) - 16, 7)) + list(range(len(ct) - 16, len(ct))):
        bad = bytearray(ct)
        bad[i] ^= 0x01
        with pytest.raises(InvalidState):
            open_state(server_key, bytes(bad), nonce)
    for i in range(len(nonce)):
        for bit in range(8):
            bad = bytearray(nonce)
            bad[i] ^= 1 << bit
            with pytest.raises(InvalidState):
                open_state(server_key, ct, bytes(bad))


def test_foreign_key_fails(server_key, pubkey_a):
    ct, nonce = seal_state(server_key, _state(pubkey_a))
    with pytest.raises(InvalidState):
        open_state(generate_server_key(), ct, nonce)


def test_truncated_or_empty_ciphertext(server_key, pubkey_a):
    ct, nonce = seal_state(server_key, _state(pubkey_a))
    for bad in (b"", ct[:10], ct[:-1]):
        with pytest.raises(InvalidState):
            open_state(server_key, bad, nonce)


@pytest.mark.parametrize("plaintext", [
    b"not json",
    b"[]",
    stabilise_json({"challenge_nonce": "AAAA"}),
    stabilise_json({"challenge_nonce": "AAAA", "pubkey": "AAAA"}),
    b"\xff\xfe",
])
def test_authentic_but_malformed_plaintext(server_key, plaintext):
    nonce = b"\x01" * AEAD_NONCE_LEN
    ct = AESGCM(server_key).encrypt(nonce, plaintext, None)
    with pytest.raises(InvalidState):
        open_state(server_key, ct, nonce)


def test_short_challenge_nonce_inside_valid_ciphertext(server_key, pubkey_a):
    state = SealedState(challenge_nonce=b"\x00" * 16, pubkey=pubkey_a)
    nonce = b"\x02" * AEAD_NONCE_LEN
    ct = AESGCM(server_key).encrypt(nonce, state.to_bytes(), None)
    with pytest.raises(InvalidState):
        open_state(server_key, ct, nonce)


def test_non_bytes_inputs(server_key):
    with pytest.raises(InvalidState):
        open_state(server_key, "text", b"\x00" * AEAD_NONCE_LEN)
    with pytest.raises(InvalidState):
        open_state(server_key, b"", None)
