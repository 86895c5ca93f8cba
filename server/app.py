# server/app.py
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from backend.challenge import issue_challenge
from backend.context import ServerContext
from backend.registration import Outcome, lookup_key, register_key
from persistence.key_store import SqliteKeyStore, StoreError
from protocol.types import (
    ChallengeBody, ChallengeRequest, ErrorBody, KeyBody, ResponseBody,
    ERR_BAD_REQUEST, ERR_INVALID_PUBKEY, ERR_LOOKUP_FAILED, ERR_NOT_FOUND,
)
from protocol.wire import challenge_to_wire, key_to_wire, pubkey_from_wire, response_from_wire
from server.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(error=message).model_dump())


def create_app(settings: Optional[Settings] = None, ctx: Optional[ServerContext] = None) -> FastAPI:
    """
    Build the HTTP app. With no ``ctx`` the lifespan opens the SQLite store and
    generates a fresh server key; passing one (tests) skips that.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        opened = None
        if getattr(app.state, "ctx", None) is None:
            opened = SqliteKeyStore(settings.database_path)
            app.state.ctx = ServerContext.fresh(opened, min_rsa_bits=settings.min_rsa_bits)
        logger.info("Starting server...")
        yield
        logger.info("Shutting down...")
        if opened is not None:
            opened.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.ctx = ctx

    @app.exception_handler(RequestValidationError)
    async def bad_body(request: Request, exc: RequestValidationError):
        logger.info("malformed request to %s", request.url.path)
        return _error(status.HTTP_400_BAD_REQUEST, ERR_BAD_REQUEST)

    # Sync handlers: FastAPI runs them in its thread pool, one request per thread.

    @app.post("/challenge", response_model=ChallengeBody)
    def post_challenge(body: ChallengeRequest, request: Request):
        ctx: ServerContext = request.app.state.ctx
        try:
            pubkey = pubkey_from_wire(body.pubkey, min_bits=ctx.min_rsa_bits)
        except ValueError:
            logger.info("challenge refused: unusable public key")
            return _error(status.HTTP_400_BAD_REQUEST, ERR_INVALID_PUBKEY)
        return challenge_to_wire(issue_challenge(ctx.server_key, pubkey))

    @app.post("/response", status_code=status.HTTP_201_CREATED)
    def post_response(body: ResponseBody, request: Request):
        ctx: ServerContext = request.app.state.ctx
        try:
            response = response_from_wire(body)
        except ValueError:
            logger.info("rejected registration for %r: undecodable fields", body.name)
            outcome = Outcome.BAD_REQUEST
        else:
            outcome = register_key(ctx, response)
        if outcome is Outcome.CREATED:
            return Response(status_code=outcome.status_code)
        return _error(outcome.status_code, outcome.message)

    @app.get("/key/{name:path}", response_model=KeyBody)
    def get_key(name: str, request: Request):
        ctx: ServerContext = request.app.state.ctx
        try:
            keybytes = lookup_key(ctx, name)
        except StoreError:
            logger.exception("failed to retrieve %r", name)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, ERR_LOOKUP_FAILED)
        if keybytes is None:
            return _error(status.HTTP_404_NOT_FOUND, ERR_NOT_FOUND)
        return key_to_wire(keybytes)

    return app
