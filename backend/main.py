"""FastAPI application exposing Google Sign-In registration and login."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from backend import __version__
from lambdas.common.registration import login_google_user, register_google_user

logger = logging.getLogger(__name__)


def _parse_allowed_origins(raw_origins: str | None) -> list[str]:
    if not raw_origins:
        return ["*"]
    if raw_origins.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in raw_origins.split(",") if origin.strip()]


def _to_response(result: dict[str, Any]) -> Response:
    return Response(
        content=result["body"],
        status_code=result["statusCode"],
        headers=result["headers"],
    )


async def _dispatch(
    workflow: Callable[[bytes | None], dict[str, Any]], request: Request
) -> Response:
    body = await request.body()
    result = await asyncio.to_thread(workflow, body or None)
    logger.debug("%s %s -> %s", request.method, request.url.path, result["statusCode"])
    return _to_response(result)


def app_factory() -> FastAPI:
    app = FastAPI(title="Google Sign-In API", version=__version__)

    parsed_origins = _parse_allowed_origins(os.environ.get("ALLOWED_ORIGINS"))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parsed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials="*" not in parsed_origins,
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/register/google")
    async def register_google(request: Request) -> Response:
        return await _dispatch(register_google_user, request)

    @app.post("/login/google")
    async def login_google(request: Request) -> Response:
        return await _dispatch(login_google_user, request)

    return app


app = app_factory()
handler = Mangum(app)
