'''
    Description:
        - Cryptographic building blocks for the key directory: base64url wire
          encoding, canonical JSON, RSA key handling, RSA-OAEP and the AES-GCM
          sealed-state codec.
'''

from .base64url import base64url_encode, base64url_decode
from .json_format import stabilise_json, parse_json_object
from .rsa_key_management import (
    generate_rsa_keypair, load_public_key, load_private_key,
    public_key_to_der, load_claimed_public_key,
)
from .rsa_oaep import oaep_encrypt, oaep_decrypt
from .sealed_state import (
    SealedState, InvalidState, generate_server_key, seal_state, open_state,
    CHALLENGE_NONCE_LEN, AEAD_NONCE_LEN,
)

__all__ = [
    "base64url_encode", "base64url_decode",
    "stabilise_json", "parse_json_object",
    "generate_rsa_keypair", "load_public_key", "load_private_key",
    "public_key_to_der", "load_claimed_public_key",
    "oaep_encrypt", "oaep_decrypt",
    "SealedState", "InvalidState", "generate_server_key", "seal_state", "open_state",
    "CHALLENGE_NONCE_LEN", "AEAD_NONCE_LEN",
]
