from typing import Dict, Optional

from pydantic import BaseModel

from file_ops import format_bytes


class Progress(BaseModel):
    """
    One block of ffmpeg's `-progress` output.
    """
    frame: Optional[int] = None
    fps: Optional[float] = None
    total_size: Optional[int] = None  # Bytes written so far
    out_time: Optional[str] = None
    out_time_seconds: Optional[float] = None
    speed: Optional[str] = None
    finished: bool = False


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _trim_timestamp(value: Optional[str]) -> Optional[str]:
    # "00:01:02.123456" -> "00:01:02.12"
    if not value or value == "N/A":
        return None
    head, dot, frac = value.partition(".")
    return f"{head}.{frac[:2]}" if dot else head


class ProgressParser:
    """
    Collects `key=value` lines and emits a Progress at every `progress=` line.
    """

    def __init__(self):
        self._fields: Dict[str, str] = {}

    def feed(self, line: str) -> Optional[Progress]:
        key, sep, value = line.strip().partition("=")
        if not sep:
            return None

        key, value = key.strip(), value.strip()
        if key != "progress":
            self._fields[key] = value
            return None

        snapshot = self._snapshot(finished=value == "end")
        self._fields = {}
        return snapshot

    def _snapshot(self, finished: bool) -> Progress:
        fields = self._fields
        out_time_us = _to_int(fields.get("out_time_us")) or _to_int(fields.get("out_time_ms"))
        speed = fields.get("speed")

        return Progress(
            frame=_to_int(fields.get("frame")),
            fps=_to_float(fields.get("fps")),
            total_size=_to_int(fields.get("total_size")),
            out_time=_trim_timestamp(fields.get("out_time")),
            out_time_seconds=out_time_us / 1_000_000 if out_time_us is not None else None,
            speed=speed if speed and speed != "N/A" else None,
            finished=finished,
        )


def format_percent(progress: Progress, duration: float) -> str:
    if not duration or progress.out_time_seconds is None:
        return "N/A"
    return f"{min(progress.out_time_seconds / duration * 100, 100):.1f}%"


def format_speed(fps: Optional[float], source_fps: float) -> str:
    if fps is None or not source_fps:
        return ""
    return f"@ {fps / source_fps:.0f}x"


def format_progress(
    progress: Progress,
    source_fps: float,
    duration: float = 0.0,
    subtitle_index: Optional[int] = None,
) -> str:
    """
    Single status line, e.g. "- [12.3%] Clean/convert: FPS=48 (12.34 MB) 00:01:02.12 @ 2x"
    """
    title = "Clean/convert" if subtitle_index is None else f"Subtitle extract #{subtitle_index}"

    parts = []
    if progress.fps is not None:
        parts.append(f"FPS={progress.fps:g}")
    if progress.total_size is not None:
        parts.append(f"({format_bytes(progress.total_size)})")
    if progress.out_time:
        parts.append(progress.out_time)
    speed = format_speed(progress.fps, source_fps)
    if speed:
        parts.append(speed)

    return f"- [{format_percent(progress, duration)}] {title}: {' '.join(parts)}"
