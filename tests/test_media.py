import pytest

from watchsync.media import extract_video_id


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/v/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s", "dQw4w9WgXcQ"),
        ("abc12345678", "abc12345678"),
    ],
    ids=["watch", "short", "embed", "v", "amp-v", "extra-params", "bare-id"],
)
def test_extract_video_id(ref, expected):
    assert extract_video_id(ref) == expected


@pytest.mark.parametrize(
    "ref",
    [
        None,
        "",
        "not a url",
        "https://example.com/video",
        "https://www.youtube.com/watch?v=short",
        "xyz",
    ],
)
def test_extract_video_id_rejects_invalid(ref):
    assert extract_video_id(ref) is None
