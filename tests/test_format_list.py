"""Tests for FormatList filtering."""

from ytfetch.models.video import Format, FormatList

MP4_AV = 'video/mp4; codecs="avc1.42001E, mp4a.40.2"'


def _formats() -> FormatList:
    return FormatList(
        [
            Format(itag=18, mime_type=MP4_AV, quality="medium", quality_label="360p"),
            Format(itag=140, mime_type='audio/mp4; codecs="mp4a.40.2"', quality="tiny"),
            Format(itag=136, mime_type='video/mp4; codecs="avc1.4d401f"', quality="hd720", quality_label="720p"),
            Format(itag=247, mime_type='video/webm; codecs="vp9"', quality="hd720", quality_label="720p60"),
            Format(itag=251, mime_type='audio/webm; codecs="opus"', quality="tiny"),
        ]
    )


class TestType:
    def test_find_video(self):
        formats = FormatList([Format(mime_type=MP4_AV)])
        assert formats.type("video") == [Format(mime_type=MP4_AV)]

    def test_subset_keeps_order(self):
        assert [f.itag for f in _formats().type("video")] == [18, 136, 247]

    def test_audio(self):
        assert [f.itag for f in _formats().type("audio")] == [140, 251]

    def test_container_substring(self):
        assert [f.itag for f in _formats().type("webm")] == [247, 251]

    def test_no_match(self):
        assert _formats().type("image") == []

    def test_empty_list(self):
        result = FormatList().type("video")
        assert result == []
        assert isinstance(result, FormatList)

    def test_returns_format_list(self):
        assert isinstance(_formats().type("video"), FormatList)


class TestQuality:
    def test_by_quality_label(self):
        assert [f.itag for f in _formats().quality("720p")] == [136, 247]

    def test_by_quality_keyword(self):
        assert [f.itag for f in _formats().quality("hd720")] == [136, 247]

    def test_by_itag(self):
        assert [f.itag for f in _formats().quality("140")] == [140]

    def test_itag_must_match_exactly(self):
        # "14" is neither an itag nor part of a quality string
        assert _formats().quality("14") == []

    def test_chained_filters(self):
        assert [f.itag for f in _formats().type("webm").quality("720p")] == [247]


class TestFindItag:
    def test_found(self):
        assert _formats().find_itag(251).mime_type.startswith("audio/webm")

    def test_missing(self):
        assert _formats().find_itag(999) is None
