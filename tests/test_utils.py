from clashstream_api.config import DEFAULT_THUMBNAIL_HOSTS, Settings
from clashstream_api.models import Track, TrackSummary
from clashstream_api.utils import (
    best_thumbnail,
    is_valid_video_id,
    proxy_path,
    thumbnail_allowed,
    thumbnail_path,
)


def test_proxy_path():
    assert proxy_path("abc123") == "/proxy/abc123"


def test_thumbnail_path_encodes_whole_url():
    assert thumbnail_path("https://i.ytimg.com/vi/x/a.jpg?s=1") == (
        "/thumbnail/https%3A%2F%2Fi.ytimg.com%2Fvi%2Fx%2Fa.jpg%3Fs%3D1"
    )
    assert thumbnail_path("") == ""


def test_best_thumbnail():
    assert best_thumbnail({"thumbnail": "t", "thumbnails": [{"url": "a"}]}) == "t"
    assert best_thumbnail({"thumbnails": [{"url": "small"}, {"url": "large"}]}) == "large"
    assert best_thumbnail({"thumbnails": []}) is None
    assert best_thumbnail({}) is None


def test_video_ids():
    assert is_valid_video_id("dQw4w9WgXcQ")
    assert is_valid_video_id("a-b_c")
    assert not is_valid_video_id("")
    assert not is_valid_video_id("a/b")
    assert not is_valid_video_id("x" * 65)


def test_thumbnail_allowlist():
    hosts = DEFAULT_THUMBNAIL_HOSTS
    assert thumbnail_allowed("https://i.ytimg.com/vi/x/a.jpg", hosts)
    assert thumbnail_allowed("http://ytimg.com/a.jpg", hosts)
    assert not thumbnail_allowed("https://notytimg.com/a.jpg", hosts)
    assert not thumbnail_allowed("ftp://i.ytimg.com/a.jpg", hosts)
    assert not thumbnail_allowed("i.ytimg.com/a.jpg", hosts)


def test_track_serialises_camel_case():
    track = Track.from_info({"id": "x", "view_count": 7}, audio_url="/proxy/s")
    assert track.model_dump(by_alias=True) == {
        "id": "x",
        "title": "Unknown Track",
        "thumbnail": "",
        "duration": 0,
        "channel": "Unknown Artist",
        "audioUrl": "/proxy/s",
        "viewCount": 7,
    }


def test_summary_prefers_channel_over_uploader():
    s = TrackSummary.from_info({"channel": "Official", "uploader": "someone"})
    assert s.channel == "Official"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("STREAM_TTL", "120")
    monkeypatch.setenv("THUMBNAIL_HOSTS", " Example.com , cdn.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = Settings.from_env()

    assert s.port == 8080
    assert s.stream_ttl == 120.0
    assert s.thumbnail_hosts == ("example.com", "cdn.test")
    assert s.log_level == "DEBUG"


def test_max_connections_from_env(monkeypatch):
    monkeypatch.setenv("UPSTREAM_MAX_CONNECTIONS", "")
    assert Settings.from_env().max_connections is None
    monkeypatch.setenv("UPSTREAM_MAX_CONNECTIONS", "250")
    assert Settings.from_env().max_connections == 250
