# backend/context.py
from __future__ import annotations
from dataclasses import dataclass

from backend.crypto import generate_server_key
from persistence.key_store import KeyStore


@dataclass(frozen=True)
class ServerContext:
    """
    Everything a request handler needs, shared read-only across threads.
    ``server_key`` is the in-memory AES-256 key for sealed state; ``store``
    guards its own write path.
    """
    server_key: bytes
    store: KeyStore
    min_rsa_bits: int = 2048

    @classmethod
    def fresh(cls, store: KeyStore, min_rsa_bits: int = 2048) -> "ServerContext":
        return cls(server_key=generate_server_key(), store=store, min_rsa_bits=min_rsa_bits)
