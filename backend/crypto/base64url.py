'''
    Description:
        - Canonical text encoding for every byte field on the wire (public keys,
          OAEP ciphertext, sealed state, AEAD nonce, revealed nonce).
        - Unpadded base64url; decoding is strict so the server only accepts back
          exactly what it emitted.
'''

# ========== Imports ========== 
import base64
import binascii


# ========== Base64 URL Encoding ========== 
def base64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


# ========== Base64 URL Decoding ========== 
def base64url_decode(text: str) -> bytes:
    """
    Raises ValueError on anything that is not unpadded base64url.
    """
    if not isinstance(text, str):
        raise ValueError("base64url input must be a string")
    if "=" in text or len(text) % 4 == 1:
        raise ValueError("malformed base64url")
    padded = text + "=" * ((-len(text)) % 4)
    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError("malformed base64url") from exc
    # reject non-canonical trailing bits so each value has one spelling
    if base64url_encode(raw) != text:
        raise ValueError("non-canonical base64url")
    return raw
