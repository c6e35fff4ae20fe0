import os
from typing import List, Optional, Set

from models.media_info import SubtitleStream
from logger import setup_logger

logger = setup_logger()

KB = 1024
MB = KB * 1024
GB = MB * 1024


def get_output_filename(input_file: str, command: str, ext: str = "mkv") -> str:
    """
    "/videos/movie.mp4", "full" -> "/videos/movie_full.mkv"
    """
    base = os.path.splitext(os.path.basename(input_file))[0]
    return os.path.join(os.path.dirname(input_file), f"{base}_{command}.{ext}")


def get_subtitle_label(stream: SubtitleStream, stream_count: int) -> str:
    """
    Disambiguating label for a subtitle file. Empty when only one stream is extracted.
    """
    if stream_count <= 1:
        return ""

    if stream.title:
        label = stream.title
    elif stream.index == 0:
        label = "default"
    else:
        label = str(stream.index)

    return label.replace("SDH", "sdh").replace(os.sep, "-").replace("/", "-")


def get_subtitle_filename(
    input_file: str,
    stream: SubtitleStream,
    stream_count: int,
    used_labels: Optional[Set[str]] = None,
) -> str:
    """
    Builds the extracted subtitle path: <dir>/<base>[.<label>].<lang>.<srt|ass>

    Labels already in used_labels get "-<index>" appended; the final label is added to it.
    """
    parts = [os.path.splitext(input_file)[0]]

    label = get_subtitle_label(stream, stream_count)
    if label and used_labels is not None:
        if label in used_labels:
            label = f"{label}-{stream.index}"
        used_labels.add(label)
    if label:
        parts.append(label)

    parts.append(stream.lang)
    parts.append(subtitle_extension(stream))
    return ".".join(parts)


def get_subtitle_filenames(input_file: str, streams: List[SubtitleStream]) -> List[str]:
    """
    Output paths for one extraction batch, unique across the batch.
    """
    used_labels: Set[str] = set()
    return [get_subtitle_filename(input_file, stream, len(streams), used_labels) for stream in streams]


def subtitle_extension(stream: SubtitleStream) -> str:
    return "ass" if stream.codec_name == "ass" else "srt"


def get_file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError as e:
        logger.warning(f"Could not read size of {path}: {e}")
        return 0


def format_bytes(size: float, places: int = 2) -> str:
    """
    Human-readable size, e.g. 1536 -> "1.50 KB".
    """
    if size >= GB:
        return f"{size / GB:.{places}f} GB"
    if size >= MB:
        return f"{size / MB:.{places}f} MB"
    if size >= KB:
        return f"{size / KB:.{places}f} KB"
    return f"{int(size)} B"
