import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Use absolute package imports so uvicorn can resolve the module reliably.
from clashstream_api.config import APP_NAME, APP_VERSION, Settings
from clashstream_api.extractor import MediaExtractor
from clashstream_api.registry import StreamNotFound, StreamRegistry
from clashstream_api.relay import UpstreamTransportError
from clashstream_api.routes.core import router as core_router
from clashstream_api.routes.search import router as search_router
from clashstream_api.routes.ui import router as ui_router

logger = logging.getLogger(__name__)


def upstream_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """
    Shared client for media upstreams. Each open relay holds one pooled
    connection until its listener finishes, so the pool is only capped
    when UPSTREAM_MAX_CONNECTIONS says so.
    """
    limits = httpx.Limits(max_connections=settings.max_connections, max_keepalive_connections=20)
    return httpx.AsyncClient(
        transport=transport,
        limits=limits,
        timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout),
        follow_redirects=True,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    registry: Optional[StreamRegistry] = None,
    extractor=None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the app. `registry`, `extractor` and the upstream `transport`
    can be swapped out (tests use an httpx.MockTransport as the media CDN).
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with upstream_client(settings, transport) as client:
            app.state.http = client
            logger.info("%s %s ready (stream ttl %ss)", APP_NAME, APP_VERSION, settings.stream_ttl)
            yield

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    # an empty registry is falsy (__len__), so test against None
    app.state.registry = registry if registry is not None else StreamRegistry(ttl=settings.stream_ttl)
    app.state.extractor = extractor if extractor is not None else MediaExtractor(settings)

    @app.exception_handler(StreamNotFound)
    async def stream_not_found(request: Request, exc: StreamNotFound):
        return JSONResponse({"error": "Stream not found or expired"}, status_code=404)

    @app.exception_handler(UpstreamTransportError)
    async def upstream_failed(request: Request, exc: UpstreamTransportError):
        logger.error("Proxy error: %s", exc)
        return JSONResponse({"error": "Stream failed"}, status_code=500)

    app.include_router(core_router)
    app.include_router(search_router)
    app.include_router(ui_router)
    return app


def run(argv=None):
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description=f"Run the {APP_NAME} audio gateway.")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args(argv)

    settings.host, settings.port, settings.log_level = args.host, args.port, args.log_level.upper()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("%s listening on http://%s:%d", APP_NAME, settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
