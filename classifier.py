import re
from fractions import Fraction
from typing import Any, Dict, List

from models.media_info import AudioStream, Streams, SubtitleStream, VideoStream
from logger import setup_logger

logger = setup_logger()

# Subtitle codecs that can be converted to a text subtitle file
TEXT_SUBTITLE_CODECS = ("mov_text", "subrip", "ass", "ssa")

SURROUND_LABELS = {
    "5.1": "5.1 Surround",
    "6": "5.1 Surround",
    "7.1": "7.1 Surround",
    "8": "7.1 Surround",
    "5.0": "5.0 Surround",
    "5": "5.0 Surround",
}

_PARENTHETICAL = re.compile(r"\(.*\)")


def strip_parenthetical(text: str) -> str:
    return _PARENTHETICAL.sub("", text, count=1)


def format_codec_name(name: str) -> str:
    """
    "AAC (Advanced Audio Coding)" -> "AAC". The ATSC A/52B long name becomes "AC3".
    """
    formatted = strip_parenthetical(name or "").strip()
    if formatted == "ATSC A/52B":
        return "AC3"
    return formatted


def format_channel_layout(raw: Any) -> str:
    """
    Friendly label for a channel layout string (or channel count).
    """
    channels = strip_parenthetical("" if raw is None else str(raw))

    if channels in SURROUND_LABELS:
        return SURROUND_LABELS[channels]

    return channels[:1].upper() + channels[1:]


def format_audio_title(index: int, orig_title: str, channel_layout: str) -> str:
    """
    Title for an audio stream.

    Streams after the first keep their original title when they have one.
    Otherwise the title is the channel layout label, with " - Default" on the
    first stream and a trailing space on the rest (ffmpeg refuses an empty
    title value).
    """
    if index > 0 and orig_title:
        return orig_title

    suffix = " - Default" if index == 0 else " "
    return f"{channel_layout}{suffix}"


def is_text_subtitle(codec_name: str) -> bool:
    return codec_name in TEXT_SUBTITLE_CODECS


def parse_frame_rate(rate: Any) -> float:
    try:
        return round(float(Fraction(str(rate))), 2)
    except (ValueError, ZeroDivisionError):
        return 0.0


def _tags(stream: Dict[str, Any]) -> Dict[str, Any]:
    return stream.get("tags") or {}


def get_audio_stream(stream: Dict[str, Any], index: int) -> AudioStream:
    tags = _tags(stream)
    orig_title = (tags.get("title") or "").strip()
    channel_layout = format_channel_layout(stream.get("channel_layout") or stream.get("channels", ""))

    return AudioStream(
        index=index,
        lang=tags.get("language") or "eng",
        codec_name=stream.get("codec_name", ""),
        formatted_codec_name=format_codec_name(stream.get("codec_long_name", "")),
        channel_layout=channel_layout,
        channels=int(stream.get("channels") or 0),
        orig_title=orig_title,
        title=format_audio_title(index, orig_title, channel_layout),
    )


def get_video_stream(stream: Dict[str, Any], index: int) -> VideoStream:
    formatted = strip_parenthetical(stream.get("codec_long_name", ""))
    # "H.264 / AVC / MPEG-4 AVC / MPEG-4 part 10" -> "H.264"
    formatted = formatted.split(" / ")[0].strip()

    return VideoStream(
        index=index,
        lang=_tags(stream).get("language") or "eng",
        codec_name=stream.get("codec_name", ""),
        formatted_codec_name=formatted,
        resolution=f"{stream.get('width', 0)}x{stream.get('height', 0)}",
        fps=parse_frame_rate(stream.get("r_frame_rate", "0/0")),
        title="",
    )


def get_subtitle_stream(stream: Dict[str, Any], index: int) -> SubtitleStream:
    tags = _tags(stream)
    codec_name = stream.get("codec_name", "")
    formatted = stream.get("codec_long_name", "").replace("SubRip subtitle", "SubRip")
    formatted = re.sub(r"HDMV.*", "PGS subtitle", formatted)

    return SubtitleStream(
        index=index,
        lang=tags.get("language") or "und",
        codec_name=codec_name,
        formatted_codec_name=formatted,
        title=(tags.get("title") or "").strip(),
        text_based=is_text_subtitle(codec_name),
    )


def classify_streams(raw_streams: List[Dict[str, Any]]) -> Streams:
    """
    Builds typed stream records from ffprobe's "streams" array.
    """
    streams = Streams()

    for raw in raw_streams:
        codec_type = raw.get("codec_type")
        if codec_type == "audio":
            streams.audio.append(get_audio_stream(raw, len(streams.audio)))
        elif codec_type == "video":
            streams.video.append(get_video_stream(raw, len(streams.video)))
        elif codec_type == "subtitle":
            streams.subtitle.append(get_subtitle_stream(raw, len(streams.subtitle)))
        else:
            logger.debug(f"Ignoring {codec_type} stream #{raw.get('index')}")

    return streams
