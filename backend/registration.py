# backend/registration.py
from __future__ import annotations
import enum
import logging
from typing import Optional

from backend.challenge import Response, verify_response
from backend.context import ServerContext
from backend.crypto import public_key_to_der
from persistence.key_store import NameTaken, StoreError
from protocol.types import ERR_COULD_NOT_INSERT, ERR_FAILED_CHALLENGE, ERR_NAME_TAKEN

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    CREATED = (201, None)
    BAD_REQUEST = (400, ERR_FAILED_CHALLENGE)
    CONFLICT = (409, ERR_NAME_TAKEN)
    INTERNAL_ERROR = (500, ERR_COULD_NOT_INSERT)

    def __init__(self, status_code: int, message: Optional[str]):
        self.status_code = status_code
        self.message = message


def register_key(ctx: ServerContext, response: Response) -> Outcome:
    """
    Bind ``response.name`` to the key proved by ``response``. The store is not
    touched unless the proof checks out.
    """
    pubkey = verify_response(ctx.server_key, response)
    if pubkey is None:
        logger.info("rejected registration for %r: failed challenge", response.name)
        return Outcome.BAD_REQUEST

    try:
        ctx.store.insert(response.name, public_key_to_der(pubkey))
    except NameTaken:
        logger.info("rejected registration for %r: name taken", response.name)
        return Outcome.CONFLICT
    except StoreError:
        logger.exception("error inserting key for %r", response.name)
        return Outcome.INTERNAL_ERROR

    logger.info("inserted key for %r", response.name)
    return Outcome.CREATED


def lookup_key(ctx: ServerContext, name: str) -> Optional[bytes]:
    """Stored key bytes for ``name``, or None. StoreError propagates."""
    keybytes = ctx.store.lookup(name)
    if keybytes is None:
        logger.info("no key registered for %r", name)
    return keybytes
