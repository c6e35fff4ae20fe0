import asyncio
import shutil
from typing import Dict, List, Optional

import ffmpeg

from analyzer import EncodePlan
from file_ops import subtitle_extension
from models.media_info import MediaInfo, SubtitleStream
from models.options import AppConfig
from logger import is_extra_debug, setup_logger
from utils.runner import CommandResult, ProgressCallback, run_command

logger = setup_logger()

# Emit machine-readable progress on stdout instead of the stats line on stderr
PROGRESS_ARGS = ("-hide_banner", "-nostats", "-progress", "pipe:1")


class Converter:
    def __init__(self, config: AppConfig):
        self.config = config
        self.ffmpeg_path = config.ffmpeg_path or shutil.which("ffmpeg")
        if not self.ffmpeg_path:
            raise FileNotFoundError("FFmpeg not found")
        self._encoders: Optional[Dict[str, str]] = None

    async def available_encoders(self) -> Dict[str, str]:
        """
        Encoders ffmpeg was built with, mapped to their type ("V", "A" or "S").
        """
        if self._encoders is None:
            proc = await asyncio.create_subprocess_exec(
                self.ffmpeg_path, "-hide_banner", "-encoders",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
            if proc.returncode != 0:
                logger.error(f"Could not list FFmpeg encoders: {stderr.decode('utf-8', errors='replace')}")
                self._encoders = {}
            else:
                self._encoders = parse_encoders(stdout.decode("utf-8", errors="replace"))
        return self._encoders

    async def audio_encoder(self) -> str:
        """
        Preferred AAC encoder if ffmpeg has it, the built-in one otherwise.
        """
        preferred = self.config.preferred_audio_encoder
        encoders = await self.available_encoders()
        if encoders.get(preferred) == "A":
            return preferred
        return self.config.audio_codec

    def build_transcode(self, info: MediaInfo, plan: EncodePlan, output_path: str):
        source = ffmpeg.input(info.path)
        streams = [source[selector] for selector in plan.selectors]
        return (
            ffmpeg
            .output(*streams, output_path, **plan.output_options)
            .global_args(*PROGRESS_ARGS)
            .overwrite_output()
        )

    def build_subtitle_extract(self, info: MediaInfo, stream: SubtitleStream, output_path: str):
        source = ffmpeg.input(info.path)
        return (
            ffmpeg
            .output(source[f"s:{stream.index}"], output_path, **{"c:s": subtitle_extension(stream)})
            .global_args(*PROGRESS_ARGS)
            .overwrite_output()
        )

    def ocr_command(self, path: str) -> List[str]:
        return [
            self.config.ocr_tool,
            "--language", self.config.ocr_language,
            "--max-workers", str(self.config.ocr_workers),
            "--overwrite",
            "--tag", self.config.ocr_tag,
            path,
        ]

    def compile(self, node) -> List[str]:
        return ffmpeg.compile(node, cmd=self.ffmpeg_path)

    async def transcode(
        self,
        info: MediaInfo,
        plan: EncodePlan,
        output_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CommandResult:
        cmd = self.compile(self.build_transcode(info, plan, output_path))
        logger.info(f"Starting {'TRANSCODE' if plan.convert_video else 'REMUX'}: {info.path} -> {output_path}")
        return await run_command(cmd, on_progress, echo_stderr=is_extra_debug())

    async def extract_subtitle(
        self,
        info: MediaInfo,
        stream: SubtitleStream,
        output_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CommandResult:
        cmd = self.compile(self.build_subtitle_extract(info, stream, output_path))
        logger.info(f"Extracting subtitle #{stream.index} ({stream.codec_name}) -> {output_path}")
        return await run_command(cmd, on_progress, echo_stderr=is_extra_debug())

    def ocr_available(self) -> bool:
        return shutil.which(self.config.ocr_tool) is not None

    async def ocr_subtitles(self, path: str) -> CommandResult:
        """
        Runs the OCR tool over the image-based subtitles in path. The tool writes its own files.
        """
        logger.info(f"Running subtitle OCR on {path}")
        return await run_command(self.ocr_command(path), echo_stderr=is_extra_debug())


def parse_encoders(output: str) -> Dict[str, str]:
    """
    Parses `ffmpeg -encoders` output:

        Encoders:
         V..... = Video
         ...
         ------
         A....D aac                  AAC (Advanced Audio Coding)
    """
    encoders: Dict[str, str] = {}
    in_table = False

    for line in output.splitlines():
        if line.strip().startswith("------"):
            in_table = True
            continue
        if not in_table:
            continue

        parts = line.split()
        if len(parts) < 2:
            continue
        flags, name = parts[0], parts[1]
        encoders[name] = flags[0]

    return encoders
