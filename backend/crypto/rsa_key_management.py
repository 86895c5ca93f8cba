'''
    Description:
        - RSA key generation plus loading of public/private keys from PEM or DER.
        - Public keys have one canonical byte form: DER SubjectPublicKeyInfo. That
          is what is sealed into challenges, stored in the directory and returned
          by lookups.
'''

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey, RSAPrivateKey

def generate_rsa_keypair(bits: int = 4096) -> tuple[bytes, bytes]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )
    return private_pem, public_pem

def load_public_key(public_pem_or_obj) -> RSAPublicKey:
    if isinstance(public_pem_or_obj, RSAPublicKey):
        return public_pem_or_obj
    if isinstance(public_pem_or_obj, str):
        public_pem_or_obj = public_pem_or_obj.encode("utf-8")
    if public_pem_or_obj.lstrip().startswith(b"-----BEGIN"):
        key = serialization.load_pem_public_key(public_pem_or_obj)
    else:
        key = serialization.load_der_public_key(public_pem_or_obj)
    if not isinstance(key, RSAPublicKey):
        raise ValueError("not an RSA public key")
    return key

def load_private_key(private_pem_or_obj) -> RSAPrivateKey:
    if isinstance(private_pem_or_obj, RSAPrivateKey):
        return private_pem_or_obj
    if isinstance(private_pem_or_obj, str):
        private_pem_or_obj = private_pem_or_obj.encode("utf-8")
    key = serialization.load_pem_private_key(private_pem_or_obj, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("not an RSA private key")
    return key

def public_key_to_der(public_key: RSAPublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )

def load_claimed_public_key(der: bytes, min_bits: int = 2048) -> RSAPublicKey:
    """
    Parse a client-supplied DER public key. Raises ValueError if it does not
    parse, is not RSA, or is smaller than ``min_bits``.
    """
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError("public key does not parse") from exc
    if not isinstance(key, RSAPublicKey):
        raise ValueError("not an RSA public key")
    if key.key_size < min_bits:
        raise ValueError(f"RSA key must be at least {min_bits} bits")
    return key
