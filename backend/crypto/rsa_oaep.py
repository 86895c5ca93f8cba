'''
    RSA-OAEP (SHA-256) used as the possession proof: the challenge nonce is
    encrypted under the claimed key and only its holder can recover it.
    OAEP is randomized, so two challenges for one key never share ciphertext.
'''

# ========== Imports ========== 
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives import hashes
from .rsa_key_management import load_private_key, load_public_key

_OAEP = padding.OAEP(
    mgf=padding.MGF1(hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)

# ========== RSA OAEP Encryption ========== 

def oaep_encrypt(public_key, plaintext: bytes) -> bytes:
    return load_public_key(public_key).encrypt(plaintext, _OAEP)

def oaep_decrypt(private_key, ciphertext: bytes) -> bytes:
    return load_private_key(private_key).decrypt(ciphertext, _OAEP)
