import os
from typing import List, Optional, Union

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from classifier import is_text_subtitle
from file_ops import format_bytes
from models.media_info import AudioStream, MediaInfo, SubtitleStream
from models.options import AppConfig

console = Console(highlight=False)

ATTENTION_MARK = "!"
OK_MARK = " "


def stream_needs_attention(lang: str, codec_name: str, kind: str, config: AppConfig) -> bool:
    """
    A stream needs attention if its language is not English, if it is audio
    not in the target codec, or if it is a text subtitle (should be extracted).
    """
    if lang != config.language:
        return True
    if kind == "audio" and codec_name != config.audio_codec:
        return True
    if kind == "subtitle" and is_text_subtitle(codec_name):
        return True
    return False


def container_needs_attention(container: str, config: AppConfig) -> bool:
    """
    Flags any container other than the output one (MKV by default). The older
    Node.js tool flagged anything that was not MP4; MKV is what this tool writes.
    """
    return container != config.output_ext.upper()


def _data_item(label: str, data: str, needs_attention: bool = False) -> str:
    style = "red" if needs_attention else "green"
    return f"[yellow]{label}:[/yellow] [italic {style}]{escape(data)}[/italic {style}]"


def _stream_table(
    title: str,
    streams: List[Union[AudioStream, SubtitleStream]],
    kind: str,
    config: AppConfig,
) -> Table:
    table = Table(title=title, title_justify="left", show_edge=False, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("#", justify="right")
    table.add_column("Lang")
    table.add_column("Codec")
    if kind == "audio":
        table.add_column("Layout")
    table.add_column("Title")

    for stream in streams:
        attention = stream_needs_attention(stream.lang, stream.codec_name, kind, config)
        row = [
            ATTENTION_MARK if attention else OK_MARK,
            f"#{stream.index}",
            stream.lang,
            stream.formatted_codec_name or stream.codec_name,
        ]
        if kind == "audio":
            row.append(stream.channel_layout)
        row.append(escape(stream.title.strip()) or "[dim](no title)[/dim]")
        table.add_row(*row, style="red" if attention else "green")

    return table


def print_file_info(
    info: MediaInfo,
    heading: str,
    config: AppConfig,
    out: Optional[Console] = None,
) -> None:
    """
    Prints container, size and per-stream details, marking anything that needs attention.
    """
    out = out or console
    container = os.path.splitext(info.path)[1].lstrip(".").upper()
    streams = info.streams

    out.rule(f"[blue]{escape(heading)}[/blue]", align="left")
    out.print(escape(info.path))
    out.print(_data_item("Container", container, container_needs_attention(container, config)))
    out.print(_data_item("File Size", format_bytes(info.size_bytes)))

    video = info.primary_video
    if video is None:
        out.print(_data_item("Video", "none", True))
    else:
        out.print(_data_item(
            "Video",
            f"{video.formatted_codec_name} {video.resolution} @ {video.fps:g}FPS",
            video.codec_name != config.video_codec,
        ))

    out.print(_stream_table(f"Audio ({len(streams.audio)} streams)", streams.audio, "audio", config))

    if streams.subtitle:
        out.print(_stream_table(
            f"Subtitles ({len(streams.subtitle)} streams)", streams.subtitle, "subtitle", config
        ))


def print_progress(line: str, is_extract: bool = False, out: Optional[Console] = None) -> None:
    out = out or console
    out.print(escape(line), style="italic green" if is_extract else "italic yellow")


def print_success(message: str, out: Optional[Console] = None) -> None:
    out = out or console
    out.print(f" {escape(message)} ", style="bold white on green")
