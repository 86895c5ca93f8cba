'''
    Description:
        - AES-256-GCM codec for the ephemeral challenge state that the server
          hands to the client and gets back with the response.
        - The server key lives only in memory; nothing is remembered between
          seal_state() and open_state(), and a new key invalidates every old token.
'''

# ========== Imports ==========
from __future__ import annotations

import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .base64url import base64url_encode, base64url_decode
from .json_format import stabilise_json, parse_json_object
from .rsa_key_management import load_public_key, public_key_to_der

CHALLENGE_NONCE_LEN = 32
AEAD_NONCE_LEN = 12
SERVER_KEY_BITS = 256


class InvalidState(Exception):
    """The sealed state could not be opened."""


@dataclass(frozen=True, eq=False)
class SealedState:
    challenge_nonce: bytes
    pubkey: RSAPublicKey

    def __eq__(self, other):
        if not isinstance(other, SealedState):
            return NotImplemented
        return (self.challenge_nonce == other.challenge_nonce
                and public_key_to_der(self.pubkey) == public_key_to_der(other.pubkey))

    def __hash__(self):
        return hash((self.challenge_nonce, public_key_to_der(self.pubkey)))

    def to_bytes(self) -> bytes:
        return stabilise_json({
            "challenge_nonce": base64url_encode(self.challenge_nonce),
            "pubkey": base64url_encode(public_key_to_der(self.pubkey)),
        })

    @classmethod
    def from_bytes(cls, data: bytes) -> "SealedState":
        obj = parse_json_object(data)
        if set(obj) != {"challenge_nonce", "pubkey"}:
            raise ValueError("unexpected sealed state fields")
        nonce = base64url_decode(obj["challenge_nonce"])
        if len(nonce) != CHALLENGE_NONCE_LEN:
            raise ValueError("challenge nonce has wrong length")
        try:
            pubkey = load_public_key(base64url_decode(obj["pubkey"]))
        except (TypeError, UnsupportedAlgorithm) as exc:
            raise ValueError("sealed public key does not load") from exc
        return cls(challenge_nonce=nonce, pubkey=pubkey)


# ========== Server key ==========
def generate_server_key() -> bytes:
    return AESGCM.generate_key(bit_length=SERVER_KEY_BITS)


# ========== Seal ==========
def seal_state(server_key: bytes, state: SealedState) -> tuple[bytes, bytes]:
    """
    Encrypt ``state`` under ``server_key`` with a fresh random nonce.
    Returns ``(ciphertext, nonce)``. The state is built by the server itself,
    so any failure here is a bug and is left to propagate.
    """
    nonce = secrets.token_bytes(AEAD_NONCE_LEN)
    ciphertext = AESGCM(server_key).encrypt(nonce, state.to_bytes(), None)
    return ciphertext, nonce


# ========== Open ==========
def open_state(server_key: bytes, ciphertext: bytes, nonce: bytes) -> SealedState:
    """
    Inverse of seal_state() for client-supplied bytes. Every failure (bad nonce
    length, authentication failure, unparsable plaintext) raises InvalidState.
    """
    if not isinstance(nonce, (bytes, bytearray)) or len(nonce) != AEAD_NONCE_LEN:
        raise InvalidState()
    if not isinstance(ciphertext, (bytes, bytearray)):
        raise InvalidState()
    try:
        plaintext = AESGCM(server_key).decrypt(bytes(nonce), bytes(ciphertext), None)
    except InvalidTag:
        raise InvalidState() from None
    try:
        return SealedState.from_bytes(plaintext)
    except ValueError:
        raise InvalidState() from None
