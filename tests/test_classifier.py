import pytest

from classifier import (
    TEXT_SUBTITLE_CODECS,
    classify_streams,
    format_audio_title,
    format_channel_layout,
    format_codec_name,
    is_text_subtitle,
    parse_frame_rate,
)
from factories import audio_raw, subtitle_raw, video_raw


@pytest.mark.parametrize("raw, label", [
    ("5.1", "5.1 Surround"),
    ("6", "5.1 Surround"),
    (6, "5.1 Surround"),
    ("7.1", "7.1 Surround"),
    ("8", "7.1 Surround"),
    ("5.0", "5.0 Surround"),
    ("5", "5.0 Surround"),
    ("5.1(side)", "5.1 Surround"),
])
def test_surround_layout_labels(raw, label):
    assert format_channel_layout(raw) == label


@pytest.mark.parametrize("raw, label", [
    ("stereo", "Stereo"),
    ("mono", "Mono"),
    ("2", "2"),
    ("quad", "Quad"),
    ("downMIX", "DownMIX"),
    ("", ""),
])
def test_other_layouts_only_capitalize_first_letter(raw, label):
    assert format_channel_layout(raw) == label


def test_first_audio_title_is_default():
    assert format_audio_title(0, "", "5.1 Surround") == "5.1 Surround - Default"
    # The first stream ignores its original title
    assert format_audio_title(0, "Commentary", "Stereo").endswith(" - Default")


def test_later_audio_title_keeps_original():
    assert format_audio_title(2, "Director's Commentary", "Stereo") == "Director's Commentary"


def test_later_audio_without_title_gets_trailing_space():
    assert format_audio_title(1, "", "Stereo") == "Stereo "


def test_codec_name_cleanup():
    assert format_codec_name("AAC (Advanced Audio Coding)") == "AAC"
    assert format_codec_name("ATSC A/52B (AC-3, E-AC-3)") == "AC3"
    assert format_codec_name("ATSC A/52B") == "AC3"
    assert format_codec_name("  DCA  ") == "DCA"
    assert format_codec_name("FLAC (Free Lossless Audio Codec)") == "FLAC"


@pytest.mark.parametrize("codec", [
    "subrip", "ass", "ssa", "mov_text", "hdmv_pgs_subtitle", "dvd_subtitle", "webvtt", "",
])
def test_subtitle_classification_is_a_partition(codec):
    stream = classify_streams([subtitle_raw(codec=codec)]).subtitle[0]
    assert stream.text_based == (codec in TEXT_SUBTITLE_CODECS)
    assert stream.text_based is is_text_subtitle(codec)


def test_frame_rate_parsing():
    assert parse_frame_rate("24000/1001") == 23.98
    assert parse_frame_rate("25/1") == 25.0
    assert parse_frame_rate("0/0") == 0.0
    assert parse_frame_rate("N/A") == 0.0


def test_classify_assigns_per_type_indexes():
    streams = classify_streams([
        video_raw(),
        audio_raw(),
        subtitle_raw(),
        audio_raw(codec="aac", long_name="AAC (Advanced Audio Coding)", lang="fre", layout="stereo", channels=2),
        {"codec_type": "attachment", "codec_name": "ttf"},
        subtitle_raw(codec="hdmv_pgs_subtitle", long_name="HDMV Presentation Graphic Stream subtitles"),
    ])

    assert [s.index for s in streams.video] == [0]
    assert [s.index for s in streams.audio] == [0, 1]
    assert [s.index for s in streams.subtitle] == [0, 1]

    first, second = streams.audio
    assert first.formatted_codec_name == "AC3"
    assert first.channel_layout == "5.1 Surround"
    assert first.title == "5.1 Surround - Default"
    assert second.lang == "fre"
    assert second.title == "Stereo "

    video = streams.video[0]
    assert video.formatted_codec_name == "H.264"
    assert video.resolution == "1920x1080"
    assert video.fps == 23.98
    assert video.lang == "eng"
    assert video.title == ""

    assert streams.subtitle[0].formatted_codec_name == "SubRip"
    assert streams.subtitle[1].formatted_codec_name == "PGS subtitle"
    assert streams.subtitle[1].text_based is False


def test_missing_tags_defaults():
    raw_audio = audio_raw()
    del raw_audio["tags"]
    raw_sub = subtitle_raw(lang=None, title="  Forced  ")

    streams = classify_streams([raw_audio, raw_sub])

    assert streams.audio[0].lang == "eng"
    assert streams.subtitle[0].lang == "und"
    assert streams.subtitle[0].title == "Forced"


def test_audio_layout_falls_back_to_channel_count():
    raw = audio_raw(layout="", channels=8)
    assert classify_streams([raw]).audio[0].channel_layout == "7.1 Surround"


def test_streams_are_frozen():
    stream = classify_streams([audio_raw()]).audio[0]
    with pytest.raises(Exception):
        stream.index = 3
