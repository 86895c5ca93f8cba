from __future__ import annotations
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)

# Directory store: name -> canonical public key bytes, insert-only.

SCHEMA = """CREATE TABLE IF NOT EXISTS keys (
    id INTEGER PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    pubkey BLOB
)"""


class StoreError(Exception):
    """The directory store could not complete the operation."""


class NameTaken(StoreError):
    """Insert hit the uniqueness constraint on ``name``."""


class KeyStore(Protocol):
    def insert(self, name: str, pubkey: bytes) -> None: ...
    def lookup(self, name: str) -> Optional[bytes]: ...


class SqliteKeyStore:
    """
    SQLite-backed directory. One connection shared by all request threads;
    every statement runs under ``_lock`` so inserts are serialized and the
    UNIQUE constraint decides which of two racing registrations wins.
    """

    def __init__(self, path: Union[str, Path] = "keys.sqlite"):
        self.path = str(path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        with self._lock:
            self._conn.execute(SCHEMA)
            self._conn.commit()
        logger.info("directory store ready at %s", self.path)

    def insert(self, name: str, pubkey: bytes) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO keys (name, pubkey) VALUES (?, ?)",
                        (name, sqlite3.Binary(pubkey)),
                    )
            except sqlite3.IntegrityError as exc:
                if exc.sqlite_errorcode == sqlite3.SQLITE_CONSTRAINT_UNIQUE:
                    raise NameTaken(name) from exc
                raise StoreError(str(exc)) from exc
            except (sqlite3.Error, ValueError) as exc:
                # ValueError covers names sqlite cannot encode (lone surrogates)
                raise StoreError(str(exc)) from exc

    def lookup(self, name: str) -> Optional[bytes]:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT pubkey FROM keys WHERE name = ?", (name,)
                ).fetchone()
            except (sqlite3.Error, ValueError) as exc:
                raise StoreError(str(exc)) from exc
        return bytes(row[0]) if row and row[0] is not None else None

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def _check_encodable(name: str) -> None:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise StoreError(str(exc)) from exc


class InMemoryKeyStore:
    """Same contract as SqliteKeyStore, kept in a dict. Used by tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._keys: Dict[str, bytes] = {}

    def insert(self, name: str, pubkey: bytes) -> None:
        _check_encodable(name)
        with self._lock:
            if name in self._keys:
                raise NameTaken(name)
            self._keys[name] = bytes(pubkey)

    def lookup(self, name: str) -> Optional[bytes]:
        _check_encodable(name)
        with self._lock:
            return self._keys.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def close(self) -> None:
        pass
