# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Tests for the storage path convention."""

import pytest

from .. import (
    Clock,
    MalformedPath,
    MediaType,
    decode_path,
    encode_path,
    folder_to_type,
    parse_timestamp,
    type_to_folder,
)


@pytest.mark.parametrize(
    "media_type, name, ts, expected",
    [
        (MediaType.IMAGE, "cat.png", 1700000000000, "images/1700000000000_cat.png"),
        (MediaType.VIDEO, "clip.mp4", 5, "videos/5_clip.mp4"),
        (MediaType.AUDIO, "song.mp3", 42, "audio/42_song.mp3"),
        ("image", "my_photo_2.jpg", 7, "images/7_my_photo_2.jpg"),
    ],
)
def test_encode_path(media_type, name, ts, expected):
    assert encode_path(media_type, name, ts) == expected


@pytest.mark.parametrize("media_type", list(MediaType))
def test_decode_recovers_encoded_fields(media_type):
    path = encode_path(media_type, "holiday_at_the_beach.dat", 1699999999123)
    decoded = decode_path(path)
    assert decoded.type == media_type
    assert decoded.created_at == 1699999999123
    assert decoded.display_name == "holiday_at_the_beach.dat"


def test_audio_folder_is_not_pluralized():
    assert type_to_folder("audio") == "audio"
    assert folder_to_type("audio") == MediaType.AUDIO
    assert decode_path("audio/5_x.mp3").type == MediaType.AUDIO
    with pytest.raises(MalformedPath):
        decode_path("audios/5_x.mp3")


@pytest.mark.parametrize(
    "path",
    [
        "cat.png",  # no folder
        "docs/5_readme.md",  # unknown folder
        "image/5_cat.png",  # singular folder
        "images/abc_cat.png",  # non-numeric timestamp
        "images/-5_cat.png",
        "images/cat.png",  # no separator
        "images/5_",  # no original name
        "images/",
        "images/sub/5_cat.png",  # nested
        "",
    ],
)
def test_decode_rejects_malformed(path):
    with pytest.raises(MalformedPath) as exc:
        decode_path(path)
    assert exc.value.path == path


def test_parse_timestamp_uses_first_token():
    assert parse_timestamp("123_a_b_c.png") == 123
    with pytest.raises(MalformedPath):
        parse_timestamp("x123_a.png")


def test_unknown_type_is_value_error():
    with pytest.raises(ValueError):
        encode_path("document", "a.pdf", 1)
    with pytest.raises(ValueError):
        encode_path("image", "", 1)


def test_clock_never_goes_backwards():
    times = iter([2.0, 1.0, 3.5])
    clock = Clock(lambda: next(times))
    assert [clock.now_ms(), clock.now_ms(), clock.now_ms()] == [2000, 2000, 3500]
