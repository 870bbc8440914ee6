import logging

import requests
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from ..relay import RelayResponse, StreamRelay, upstream_headers
from ..utils import thumbnail_allowed

logger = logging.getLogger(__name__)

router = APIRouter(tags=["core"])


@router.get("/api/health")
def health(request: Request):
    return {"status": "ok", "cachedStreams": len(request.app.state.registry)}


@router.get("/proxy/{stream_id}")
async def proxy(stream_id: str, request: Request):
    """
    Relay a registered stream. Unknown/expired ids raise StreamNotFound and
    upstream failures before headers raise UpstreamTransportError; both are
    turned into JSON errors by the app's exception handlers.
    """
    state = request.app.state
    url = state.registry.resolve(stream_id)
    logger.info("Proxying stream: %s", stream_id)

    settings = state.settings
    relay = StreamRelay(
        state.http,
        url,
        upstream_headers(settings.user_agent, request.headers.get("range")),
        buffer_chunks=settings.relay_buffer_chunks,
        chunk_size=settings.relay_chunk_size,
    )
    head = await relay.start()
    if head.status_code >= 400:
        logger.warning("Upstream answered %d for stream %s", head.status_code, stream_id)
    return RelayResponse(relay, head)


@router.get("/thumbnail/{url:path}")
def thumbnail(url: str, request: Request):
    settings = request.app.state.settings
    # an encoded "?" is already part of `url`; only an unencoded one shows up here.
    # request.url is rebuilt from the decoded path, so read the raw query string.
    query = request.scope.get("query_string", b"").decode("latin-1")
    if query:
        url = f"{url}?{query}"
    if not thumbnail_allowed(url, settings.thumbnail_hosts):
        return PlainTextResponse("Thumbnail not found", status_code=404)

    try:
        upstream = requests.get(
            url,
            stream=True,
            timeout=(5, 15),
            headers={"User-Agent": settings.user_agent},
        )
    except requests.RequestException as e:
        logger.warning("Thumbnail fetch failed: %s", e)
        return PlainTextResponse("Thumbnail not found", status_code=404)

    if upstream.status_code >= 400:
        upstream.close()
        return PlainTextResponse("Thumbnail not found", status_code=404)

    def gen():
        try:
            for chunk in upstream.iter_content(chunk_size=16 * 1024):
                if chunk:
                    yield chunk
        finally:
            upstream.close()

    return StreamingResponse(
        gen(),
        media_type=upstream.headers.get("Content-Type") or "image/jpeg",
        headers={"Cache-Control": "public, max-age=86400"},
    )
