#!/usr/bin/env python3

"""
Diagnostic HTTP server
Echo, header, hostname, FQDN, interface IP and env endpoints plus
health-check and controlled-exit endpoints for exercising probes and restarts.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
import uvicorn

import settings
from diagnostics import env_lines, fqdn_line, header_lines, hostname_line, iter_ip_lines
from health import Clock, StartInstant, evaluate_fail, healthz_body

# Setup logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain; charset=utf-8"


def hostname(request: Request):
    """Machine hostname; lookup errors are reported in the body with a 200"""
    return PlainTextResponse(hostname_line())


async def echo(request: Request):
    """Return the request body unchanged"""
    body = await request.body()
    return Response(content=body, media_type=TEXT_PLAIN)


def echoheaders(request: Request):
    return Response(content=b"".join(header_lines(request.headers.raw)), media_type=TEXT_PLAIN)


def fqdn(request: Request):
    return PlainTextResponse(fqdn_line())


def ip(request: Request):
    """One bare IP per line for every interface address"""
    return StreamingResponse(iter_ip_lines(), media_type=TEXT_PLAIN)


def env(request: Request):
    return Response(content=b"".join(env_lines()), media_type=TEXT_PLAIN)


def healthz(request: Request):
    state = request.app.state
    uptime = state.started.uptime(state.clock)
    return PlainTextResponse(healthz_body(uptime))


def healthz_fail(request: Request):
    """Healthy until uptime reaches the threshold, 500 from then on"""
    state = request.app.state
    check = evaluate_fail(state.started.uptime(state.clock), state.fail_after)
    if check.status_code != 200:
        logger.info(f"healthz-fail reporting failure, uptime {check.uptime:.1f}s")
    return PlainTextResponse(check.body, status_code=check.status_code)


def exit_process(request: Request):
    """Kill the whole process with the given status. No response is sent."""
    exit_code = request.path_params["exit_code"]
    logger.warning(f"💥 Exit requested, terminating process with code {exit_code}")
    os._exit(exit_code % 256)


# Plain routes without a method list: matching is on path only, any verb
# (TRACE, custom ones included) reaches the handler
ROUTES = [
    ("/", hostname),
    ("/hostname", hostname),
    ("/echo", echo),
    ("/echoheaders", echoheaders),
    ("/fqdn", fqdn),
    ("/ip", ip),
    ("/env", env),
    ("/healthz", healthz),
    ("/healthz-fail", healthz_fail),
    ("/exit/{exit_code:int}", exit_process),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Diagnostic server starting up...")
    logger.info(f"healthz-fail threshold: {app.state.fail_after:.1f}s")
    yield
    logger.info("Diagnostic server shutting down")


def create_app(
    started: Optional[StartInstant] = None,
    clock: Clock = time.monotonic,
    fail_after: Optional[float] = None,
) -> FastAPI:
    """
    Build the application.

    The start instant is fixed here, before any request can be served, and
    handed to the health handlers through app.state.
    """
    app = FastAPI(
        title="Diagnostic Server",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.clock = clock
    app.state.started = started if started is not None else StartInstant.now(clock)
    app.state.fail_after = settings.FAIL_AFTER_SECONDS if fail_after is None else fail_after
    for path, endpoint in ROUTES:
        app.add_route(path, endpoint)
    return app


app = create_app()


def main():
    logger.info(f"🌐 PORT environment variable: {os.getenv('PORT', 'NOT SET')}")
    logger.info(f"🌐 Starting server on {settings.HOST}:{settings.PORT}")

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=settings.ACCESS_LOG,
    )


if __name__ == "__main__":
    main()
