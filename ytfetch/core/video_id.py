"""
Video identity extraction.

Turns whatever the user typed (a bare id, a watch URL, an embed or shorts
link, a snippet of HTML) into a canonical video id.

Patterns run from most specific to most generic and each one is applied to
the *current* candidate: when a pattern matches, its capture replaces the
candidate and the next pattern sees the narrowed string. The outcome is
therefore decided by the last pattern that matched.
"""

import logging
import re

from ..errors import InvalidCharactersError, VideoIDTooShortError

logger = logging.getLogger(__name__)

# Characters that mark the input as something other than a bare id
_SEPARATORS = '"?&/<%='

# Characters that must not survive extraction
_FORBIDDEN = "?&/<%="

MIN_VIDEO_ID_LENGTH = 10

VIDEO_ID_PATTERNS: list[re.Pattern[str]] = [
    # watch?v=ID, /v/ID, /embed/ID, /shorts/ID
    re.compile(r'(?:v|embed|shorts|watch\?v)(?:=|/)([^"&?/=%]{11})'),
    # any 11-char token right after "=" or "/"
    re.compile(r'(?:=|/)([^"&?/=%]{11})'),
    # any 11-char token not containing a separator
    re.compile(r'([^"&?/=%]{11})'),
]


def _has_any(text: str, chars: str) -> bool:
    return any(c in text for c in chars)


def extract_video_id(raw: str) -> str:
    """
    Extract and validate a video id from ``raw``.

    Raises InvalidCharactersError if the extracted candidate still contains
    URL syntax, VideoIDTooShortError if it is shorter than 10 characters.
    """
    video_id = raw

    if _has_any(video_id, _SEPARATORS):
        for pattern in VIDEO_ID_PATTERNS:
            match = pattern.search(video_id)
            if match:
                video_id = match.group(1)

    if _has_any(video_id, _FORBIDDEN):
        raise InvalidCharactersError(video_id)
    if len(video_id) < MIN_VIDEO_ID_LENGTH:
        raise VideoIDTooShortError(video_id)

    logger.debug("Resolved %r to video id %s", raw, video_id)
    return video_id
