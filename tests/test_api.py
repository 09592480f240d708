"""Tests for the HTTP API."""

import pytest
from fakes import (
    MEDIA_HOST,
    PLAYER_JS,
    PLAYER_PATH,
    VIDEO_ID,
    FakeYouTube,
    MediaServer,
    Router,
    make_format,
    mock_http,
    player_response,
)
from fastapi.testclient import TestClient

from ytfetch.client import YouTubeClient
from ytfetch.core.transfer import ChunkedTransferEngine
from ytfetch.errors import TransferCancelledError
from ytfetch.main import app
from ytfetch.routes.api import get_client, relay_stream

MEDIA = b"0123456789abcdefghijklmno"


@pytest.fixture
def media() -> MediaServer:
    return MediaServer(MEDIA)


@pytest.fixture
def make_api(media):
    def factory(youtube: FakeYouTube) -> TestClient:
        client = YouTubeClient(http=mock_http(Router(youtube, media)), chunk_size=10)
        app.dependency_overrides[get_client] = lambda: client
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()


@pytest.fixture
def api(make_api, fake_youtube):
    with make_api(fake_youtube) as test_client:
        yield test_client


class TestRoot:
    def test_service_info(self, api):
        response = api.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "ytfetch"
        assert data["endpoints"]["stream"] == "/api/stream"


class TestVideoEndpoint:
    def test_video_metadata(self, api):
        response = api.get("/api/video", params={"ref": f"https://youtu.be/{VIDEO_ID}"})
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == VIDEO_ID
        assert data["title"] == "Test Video"
        assert [f["itag"] for f in data["formats"]] == [18, 140]
        assert data["formats"][0]["mimeType"].startswith("video/mp4")
        assert data["formats"][0]["contentLength"] == 25

    def test_client_type_forwarded(self, api, fake_youtube):
        api.get("/api/video", params={"ref": VIDEO_ID, "client_type": "IOS"})
        assert fake_youtube.last_player_payload()["context"]["client"]["clientName"] == "IOS"

    def test_invalid_reference(self, api, fake_youtube):
        response = api.get("/api/video", params={"ref": "short"})
        assert response.status_code == 400
        assert response.json()["detail"] == {
            "success": False,
            "error": "the video id must be at least 10 characters long, got 'short'",
            "error_code": "input.too_short",
        }
        assert fake_youtube.requests == []

    def test_reference_is_trimmed(self, api):
        response = api.get("/api/video", params={"ref": f"  {VIDEO_ID}\n"})
        assert response.status_code == 200
        assert response.json()["id"] == VIDEO_ID

    def test_wrongly_shaped_response(self, make_api):
        response = player_response(formats=[make_format(18, "video/mp4")], videoDetails="oops")
        with make_api(FakeYouTube(response=response)) as api:
            result = api.get("/api/video", params={"ref": VIDEO_ID})
        assert result.status_code == 502
        assert result.json()["detail"]["error_code"] == "protocol.decode_failed"

    def test_missing_reference(self, api):
        assert api.get("/api/video").status_code == 422

    def test_unplayable_video(self, make_api):
        response = player_response(playabilityStatus={"status": "ERROR", "reason": "Video unavailable"})
        with make_api(FakeYouTube(response=response)) as api:
            result = api.get("/api/video", params={"ref": VIDEO_ID})
        assert result.status_code == 403
        assert result.json()["detail"]["error_code"] == "youtube.playability"
        assert "Video unavailable" in result.json()["detail"]["error"]

    def test_upstream_failure(self, make_api):
        with make_api(FakeYouTube(statuses={"/embed/": 503})) as api:
            result = api.get("/api/video", params={"ref": VIDEO_ID})
        assert result.status_code == 502
        assert result.json()["detail"]["error_code"] == "transport.error"

    def test_undecodable_response(self, make_api):
        with make_api(FakeYouTube(response=b"<html>")) as api:
            result = api.get("/api/video", params={"ref": VIDEO_ID})
        assert result.status_code == 502
        assert result.json()["detail"]["error_code"] == "protocol.decode_failed"


class TestFormatsEndpoint:
    def test_all_formats(self, api):
        response = api.get("/api/formats", params={"ref": VIDEO_ID})
        assert [f["itag"] for f in response.json()] == [18, 140]

    def test_filter_by_type(self, api):
        response = api.get("/api/formats", params={"ref": VIDEO_ID, "type": "audio"})
        assert [f["itag"] for f in response.json()] == [140]

    @pytest.mark.parametrize("quality,expected", [("360p", [18]), ("tiny", [140]), ("140", [140])])
    def test_filter_by_quality(self, api, quality, expected):
        response = api.get("/api/formats", params={"ref": VIDEO_ID, "quality": quality})
        assert [f["itag"] for f in response.json()] == expected

    def test_no_match(self, api):
        response = api.get("/api/formats", params={"ref": VIDEO_ID, "type": "video/webm"})
        assert response.status_code == 200
        assert response.json() == []


class TestStreamEndpoint:
    def test_streams_requested_format(self, api, media):
        response = api.get("/api/stream", params={"ref": VIDEO_ID, "itag": 18})
        assert response.status_code == 200
        assert response.content == MEDIA
        assert response.headers["content-type"] == "video/mp4"
        assert response.headers["content-length"] == "25"
        assert media.ranges == ["bytes=0-9", "bytes=10-19", "bytes=20-29"]

    def test_first_format_by_default(self, api, media):
        response = api.get("/api/stream", params={"ref": VIDEO_ID})
        assert response.content == MEDIA
        assert media.requests[0].url.host == MEDIA_HOST

    def test_unknown_itag(self, api):
        response = api.get("/api/stream", params={"ref": VIDEO_ID, "itag": 999})
        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "format.not_found"

    def test_cipher_not_resolvable(self, api, media):
        response = api.get("/api/stream", params={"ref": VIDEO_ID, "itag": 140})
        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "cipher.decipher_failed"
        assert media.requests == []


class TestHealthEndpoint:
    def test_empty_cache(self, api):
        response = api.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "player_cache": {"key": None, "size": 0, "fresh": False},
        }

    def test_cache_state_after_lookup(self, api):
        api.get("/api/video", params={"ref": VIDEO_ID})
        cache = api.get("/api/health").json()["player_cache"]
        assert cache == {"key": PLAYER_PATH, "size": len(PLAYER_JS), "fresh": True}


class TestRelayStream:
    @pytest.mark.asyncio
    async def test_relays_all_bytes_and_closes(self, media):
        stream = ChunkedTransferEngine(mock_http(media), chunk_size=10).open_stream(
            f"https://{MEDIA_HOST}/videoplayback?itag=18", len(MEDIA)
        )
        assert b"".join([chunk async for chunk in relay_stream(stream)]) == MEDIA
        assert stream.done

    @pytest.mark.asyncio
    async def test_early_close_stops_transfer(self, media):
        stream = ChunkedTransferEngine(mock_http(media), chunk_size=10).open_stream(
            f"https://{MEDIA_HOST}/videoplayback?itag=18", len(MEDIA)
        )
        relay = relay_stream(stream)
        assert await relay.__anext__() == MEDIA[:10]

        # what the server does when the client goes away mid-response
        await relay.aclose()

        requests_at_close = len(media.requests)
        with pytest.raises(TransferCancelledError):
            await stream.__anext__()
        assert stream.done
        assert len(media.requests) == requests_at_close
