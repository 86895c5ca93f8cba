"""
Proof-of-possession challenge
-----------------------------
issue_challenge() encrypts a fresh 32-byte nonce to the claimed key and seals
``{nonce, key}`` under the server key. verify_response() opens the sealed
state again and, if the client recovered the nonce, returns the key that was
sealed at issuance. The key in a response is never trusted: only the sealed
one is.
"""

from __future__ import annotations
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from backend.crypto import (
    CHALLENGE_NONCE_LEN,
    InvalidState,
    SealedState,
    oaep_encrypt,
    open_state,
    seal_state,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Challenge:
    challenge: bytes   # OAEP(challenge_nonce) under the claimed key
    state: bytes       # AES-GCM ciphertext of the SealedState
    nonce: bytes       # AES-GCM nonce


@dataclass(frozen=True)
class Response:
    response: bytes    # nonce the client recovered
    state: bytes
    nonce: bytes
    name: str


def issue_challenge(server_key: bytes, pubkey: RSAPublicKey) -> Challenge:
    challenge_nonce = secrets.token_bytes(CHALLENGE_NONCE_LEN)
    state, nonce = seal_state(server_key, SealedState(challenge_nonce, pubkey))
    return Challenge(
        challenge=oaep_encrypt(pubkey, challenge_nonce),
        state=state,
        nonce=nonce,
    )


def verify_response(server_key: bytes, response: Response) -> Optional[RSAPublicKey]:
    """Return the proved key, or None. Never raises on client input."""
    try:
        sealed = open_state(server_key, response.state, response.nonce)
    except InvalidState:
        return None
    revealed = response.response
    if not isinstance(revealed, (bytes, bytearray)):
        return None
    if not hmac.compare_digest(bytes(revealed), sealed.challenge_nonce):
        return None
    return sealed.pubkey
