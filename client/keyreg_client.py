# client/keyreg_client.py
# Run: python -m client.keyreg_client --help
from __future__ import annotations
import argparse
import os
import sys
from urllib.parse import quote
from pathlib import Path
from typing import Optional

import httpx

from backend.crypto import (
    base64url_decode, base64url_encode, generate_rsa_keypair,
    load_private_key, load_public_key, public_key_to_der,
)
from protocol.types import ChallengeBody, ErrorBody, KeyBody
from protocol.wire import challenge_from_wire, response_to_wire
from .prover import solve_challenge

DEFAULT_URL = os.environ.get("KEYREG_URL", "http://127.0.0.1:3030")


class RegistrationError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _raise_for_error(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        message = ErrorBody.model_validate(resp.json()).error
    except ValueError:
        message = resp.text
    raise RegistrationError(resp.status_code, message)


class KeyregClient:
    """
    Talks to the key directory. ``http`` may be any httpx.Client (FastAPI's
    TestClient included); otherwise one is opened for ``base_url``.
    """

    def __init__(self, base_url: str = DEFAULT_URL, http: Optional[httpx.Client] = None):
        self.http = http or httpx.Client(base_url=base_url, timeout=10.0)

    def request_challenge(self, public_pem) -> ChallengeBody:
        der = public_key_to_der(load_public_key(public_pem))
        resp = self.http.post("/challenge", json={"pubkey": base64url_encode(der)})
        _raise_for_error(resp)
        return ChallengeBody.model_validate(resp.json())

    def register(self, private_pem, name: str) -> None:
        public_key = load_private_key(private_pem).public_key()
        challenge = challenge_from_wire(self.request_challenge(public_key))
        answer = solve_challenge(private_pem, challenge, name)
        resp = self.http.post("/response", json=response_to_wire(answer).model_dump())
        _raise_for_error(resp)

    def lookup(self, name: str) -> Optional[bytes]:
        resp = self.http.get(f"/key/{quote(name, safe='')}")
        if resp.status_code == 404:
            return None
        _raise_for_error(resp)
        return base64url_decode(KeyBody.model_validate(resp.json()).pubkey)


# ========== CLI ==========

def _cmd_keygen(args) -> int:
    private_pem, public_pem = generate_rsa_keypair(args.bits)
    Path(args.out).write_bytes(private_pem)
    os.chmod(args.out, 0o600)
    print(public_pem.decode("ascii"), end="")
    return 0

def _cmd_register(args) -> int:
    private_pem = Path(args.key).read_bytes()
    try:
        KeyregClient(args.url).register(private_pem, args.name)
    except RegistrationError as e:
        print(f"registration failed: {e.message}", file=sys.stderr)
        return 1
    print(f"registered {args.name}")
    return 0

def _cmd_lookup(args) -> int:
    keybytes = KeyregClient(args.url).lookup(args.name)
    if keybytes is None:
        print(f"{args.name}: not found", file=sys.stderr)
        return 1
    print(base64url_encode(keybytes))
    return 0

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="keyreg", description="Key directory client")
    p.add_argument("--url", default=DEFAULT_URL)
    sub = p.add_subparsers(dest="command", required=True)

    kg = sub.add_parser("keygen", help="write a new RSA private key, print its public key")
    kg.add_argument("out")
    kg.add_argument("--bits", type=int, default=4096)
    kg.set_defaults(func=_cmd_keygen)

    rg = sub.add_parser("register", help="prove possession of KEY and register it as NAME")
    rg.add_argument("key")
    rg.add_argument("name")
    rg.set_defaults(func=_cmd_register)

    lk = sub.add_parser("lookup", help="print the key registered for NAME")
    lk.add_argument("name")
    lk.set_defaults(func=_cmd_lookup)
    return p

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
