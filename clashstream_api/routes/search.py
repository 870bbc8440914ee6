import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..extractor import ExtractionError
from ..models import Track, TrackList, TrackSummary
from ..utils import is_valid_video_id, proxy_path

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


def _error(status: int, message: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(body, status_code=status)


@router.get("/search", response_model=Track)
async def search(request: Request, query: Optional[str] = None):
    """Best match for `query`, registered for playback through /proxy."""
    if not query or not query.strip():
        return _error(400, "Query parameter is required")

    logger.info("Searching for: %s", query)
    try:
        info, audio_url = await asyncio.to_thread(request.app.state.extractor.search, query)
    except ExtractionError as e:
        logger.error("Search error: %s", e)
        return _error(500, "Failed to fetch audio stream", str(e))

    stream_id = request.app.state.registry.register(audio_url)
    track = Track.from_info(info, audio_url=proxy_path(stream_id))
    logger.info("Found: %s (stream: %s)", track.title, stream_id)
    return track


@router.get("/search-list", response_model=TrackList)
async def search_list(request: Request, query: Optional[str] = None, count: Optional[str] = None):
    if not query or not query.strip():
        return _error(400, "Query parameter is required")

    try:
        count = int(count) if count not in (None, "") else 5
    except ValueError:
        return _error(400, "Count must be an integer")
    count = max(1, min(count, request.app.state.settings.max_search_results))
    logger.info("Searching for %d tracks: %s", count, query)
    try:
        entries = await asyncio.to_thread(request.app.state.extractor.search_list, query, count)
    except ExtractionError as e:
        logger.error("Search list error: %s", e)
        return _error(500, "Failed to search", str(e))

    tracks = [TrackSummary.from_info(e) for e in entries]
    logger.info("Found %d tracks", len(tracks))
    return TrackList(tracks=tracks)


@router.get("/play/{video_id}", response_model=Track)
async def play(video_id: str, request: Request):
    if not is_valid_video_id(video_id):
        return _error(400, "Invalid video id")

    try:
        info, audio_url = await asyncio.to_thread(request.app.state.extractor.resolve_video, video_id)
    except ExtractionError as e:
        logger.error("Play error: %s", e)
        return _error(500, "Failed to get stream URL")

    stream_id = request.app.state.registry.register(audio_url)
    return Track.from_info(info, audio_url=proxy_path(stream_id))
