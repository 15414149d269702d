"""Media reference parsing for YouTube URLs."""

import re

VIDEO_ID_LENGTH = 11

_VIDEO_ID_PATTERN = re.compile(
    r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*"
)
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(ref: str | None) -> str | None:
    """Extract the 11 character video id from a YouTube URL.

    A bare video id is returned unchanged. Returns None if the reference is
    empty or does not contain a valid id.
    """
    if not ref:
        return None
    ref = ref.strip()
    if _BARE_ID_PATTERN.match(ref):
        return ref
    match = _VIDEO_ID_PATTERN.match(ref)
    if match is None:
        return None
    video_id = match.group(2)
    return video_id if len(video_id) == VIDEO_ID_LENGTH else None

