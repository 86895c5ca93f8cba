from __future__ import annotations

from backend.challenge import Challenge, Response
from backend.crypto import oaep_decrypt


def solve_challenge(private_pem, challenge: Challenge, name: str) -> Response:
    """Recover the nonce with our private key and echo the sealed state back."""
    revealed = oaep_decrypt(private_pem, challenge.challenge)
    return Response(response=revealed, state=challenge.state, nonce=challenge.nonce, name=name)
