import io

from rich.console import Console

from factories import audio_raw, media_info, subtitle_raw, video_raw
from report import container_needs_attention, print_file_info, stream_needs_attention


def render(info, config):
    out = Console(file=io.StringIO(), width=160, color_system=None)
    print_file_info(info, "Input file info", config, out=out)
    return out.file.getvalue()


def test_stream_needs_attention(config):
    assert stream_needs_attention("fre", "aac", "audio", config)
    assert stream_needs_attention("eng", "ac3", "audio", config)
    assert not stream_needs_attention("eng", "aac", "audio", config)
    assert stream_needs_attention("eng", "subrip", "subtitle", config)
    assert not stream_needs_attention("eng", "hdmv_pgs_subtitle", "subtitle", config)
    assert stream_needs_attention("und", "hdmv_pgs_subtitle", "subtitle", config)


def test_container_needs_attention(config):
    assert container_needs_attention("MP4", config)
    assert not container_needs_attention("MKV", config)


def test_report_lists_streams_and_marks(config):
    info = media_info(
        video_raw(),
        audio_raw(codec="aac", long_name="AAC (Advanced Audio Coding)", layout="stereo", channels=2),
        audio_raw(lang="fre", title="Français"),
        subtitle_raw(codec="subrip"),
        path="/videos/movie.mp4",
    )

    text = render(info, config)

    assert "Input file info" in text
    assert "/videos/movie.mp4" in text
    assert "Container: MP4" in text
    assert "File Size: 1.40 GB" in text
    assert "H.264 1920x1080 @ 23.98FPS" in text
    assert "Audio (2 streams)" in text
    assert "Subtitles (1 streams)" in text

    lines = text.splitlines()
    stereo = next(line for line in lines if "Stereo - Default" in line)
    french = next(line for line in lines if "Français" in line)
    subrip = next(line for line in lines if "SubRip" in line)
    assert not stereo.lstrip().startswith("!")
    assert french.lstrip().startswith("!")
    assert subrip.lstrip().startswith("!")


def test_report_without_subtitles(config):
    text = render(media_info(video_raw(), audio_raw()), config)

    assert "Subtitles" not in text
    assert "5.1 Surround - Default" in text
