from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .utils import best_thumbnail, thumbnail_path


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrackSummary(_Camel):
    id: Optional[str] = None
    title: str = "Unknown Track"
    thumbnail: str = ""
    duration: Union[int, float] = 0
    channel: str = "Unknown Artist"

    @classmethod
    def fields_from_info(cls, info: Dict[str, Any]) -> Dict[str, Any]:
        thumb = best_thumbnail(info)
        return {
            "id": info.get("id"),
            "title": info.get("title") or "Unknown Track",
            "thumbnail": thumbnail_path(thumb) if thumb else "",
            "duration": info.get("duration") or 0,
            "channel": info.get("channel") or info.get("uploader") or "Unknown Artist",
        }

    @classmethod
    def from_info(cls, info: Dict[str, Any]) -> "TrackSummary":
        return cls(**cls.fields_from_info(info))


class Track(TrackSummary):
    audio_url: str
    view_count: int = 0

    @classmethod
    def from_info(cls, info: Dict[str, Any], audio_url: str = "") -> "Track":
        return cls(
            **cls.fields_from_info(info),
            audio_url=audio_url,
            view_count=info.get("view_count") or 0,
        )


class TrackList(_Camel):
    tracks: List[TrackSummary]
