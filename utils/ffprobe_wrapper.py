import asyncio
import json
import os
import shutil
from typing import Any, Dict, Optional

from classifier import classify_streams
from file_ops import get_file_size
from models.media_info import MediaInfo
from logger import setup_logger

logger = setup_logger()


class ProbeError(Exception):
    pass


class FFprobeWrapper:
    def __init__(self, ffprobe_path: Optional[str] = None):
        self.ffprobe_path = ffprobe_path or shutil.which("ffprobe")
        if not self.ffprobe_path:
            logger.error("FFprobe not found in system PATH")
            raise FileNotFoundError("FFprobe not found. Please install FFmpeg.")

    async def probe(self, file_path: str) -> Dict[str, Any]:
        """
        Runs ffprobe on the file and returns its parsed JSON output.
        """
        if not os.path.exists(file_path):
            raise ProbeError(f"File not found: {file_path}")

        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            file_path
        ]

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()

        if proc.returncode != 0:
            raise ProbeError(
                f"FFprobe failed for {file_path}: {stderr.decode('utf-8', errors='replace').strip()}"
            )

        try:
            return json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise ProbeError(f"Error parsing metadata for {file_path}: {e}") from e

    async def get_media_info(self, file_path: str) -> MediaInfo:
        data = await self.probe(file_path)
        return self._parse_json(data, file_path)

    def _parse_json(self, data: Dict[str, Any], file_path: str) -> MediaInfo:
        fmt = data.get("format", {})
        streams = classify_streams(data.get("streams", []))

        logger.debug(f"Classified streams for {file_path}: {streams.model_dump()}")

        try:
            duration = float(fmt.get("duration", 0))
        except (TypeError, ValueError):
            duration = 0.0

        return MediaInfo(
            path=file_path,
            size_bytes=get_file_size(file_path),
            duration_seconds=duration,
            # e.g. "matroska,webm" -> "matroska"
            container_format=fmt.get("format_name", "unknown").split(",")[0],
            streams=streams,
        )
