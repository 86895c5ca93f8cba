# protocol/wire.py
from __future__ import annotations
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from backend.challenge import Challenge, Response
from backend.crypto import base64url_encode, base64url_decode, load_claimed_public_key
from .types import ChallengeBody, ResponseBody, KeyBody

# Conversions between the JSON bodies and the protocol objects.
# Decoders raise ValueError; callers decide what that means on their endpoint.

def pubkey_from_wire(pubkey_b64u: str, min_bits: int = 2048) -> RSAPublicKey:
    return load_claimed_public_key(base64url_decode(pubkey_b64u), min_bits=min_bits)

def challenge_to_wire(challenge: Challenge) -> ChallengeBody:
    return ChallengeBody(
        challenge=base64url_encode(challenge.challenge),
        state=base64url_encode(challenge.state),
        nonce=base64url_encode(challenge.nonce),
    )

def challenge_from_wire(body: ChallengeBody) -> Challenge:
    return Challenge(
        challenge=base64url_decode(body.challenge),
        state=base64url_decode(body.state),
        nonce=base64url_decode(body.nonce),
    )

def response_to_wire(response: Response) -> ResponseBody:
    return ResponseBody(
        response=base64url_encode(response.response),
        state=base64url_encode(response.state),
        nonce=base64url_encode(response.nonce),
        name=response.name,
    )

def response_from_wire(body: ResponseBody) -> Response:
    return Response(
        response=base64url_decode(body.response),
        state=base64url_decode(body.state),
        nonce=base64url_decode(body.nonce),
        name=body.name,
    )

def key_to_wire(keybytes: bytes) -> KeyBody:
    return KeyBody(pubkey=base64url_encode(keybytes))
