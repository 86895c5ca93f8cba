# protocol/types.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict

# ---- Error messages (the only detail a client ever sees) ----
ERR_FAILED_CHALLENGE = "failed challenge"
ERR_NAME_TAKEN = "name taken"
ERR_COULD_NOT_INSERT = "could not insert"
ERR_NOT_FOUND = "not found"
ERR_INVALID_PUBKEY = "invalid public key"
ERR_BAD_REQUEST = "bad request"
ERR_LOOKUP_FAILED = "lookup failed"

# All byte fields below are unpadded base64url strings.
# Public keys are DER SubjectPublicKeyInfo.


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ChallengeRequest(_Wire):
    pubkey: str


class ChallengeBody(_Wire):
    challenge: str
    state: str
    nonce: str


class ResponseBody(_Wire):
    response: str
    state: str
    nonce: str
    name: str


class KeyBody(_Wire):
    pubkey: str


class ErrorBody(_Wire):
    error: str
