'''
    Description:
        - Canonical JSON bytes for the sealed state plaintext, and the matching
          strict parser used when a sealed state is opened again.
'''

# ========== Imports ========== 
import json


# ========== stabilise Json ========== 
# same object -> same bytes, so seal() output is deterministic up to the AEAD nonce
def stabilise_json(obj) -> bytes:
    return json.dumps(
        obj,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


# ========== parse Json ========== 
def parse_json_object(data: bytes) -> dict:
    """Decode UTF-8 JSON that must be an object. Raises ValueError otherwise."""
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("not a JSON document") from exc
    if not isinstance(obj, dict):
        raise ValueError("expected a JSON object")
    return obj
