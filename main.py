import argparse
import asyncio
import os
import sys
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from analyzer import Analyzer, EncodePlan, StreamSelectionError
from converter import Converter
from file_ops import get_output_filename, get_subtitle_filenames
from models.media_info import MediaInfo, SubtitleStream
from models.options import AppConfig
from logger import add_file_handler, setup_logger
from progress import format_progress
from report import print_file_info, print_progress, print_success
from utils.ffprobe_wrapper import FFprobeWrapper, ProbeError
from utils.runner import CommandError

logger = setup_logger()

COMMANDS = ("extract-subs", "clean", "convert-audio", "convert-video", "full", "force-full", "info")
DEFAULT_CONFIG_PATH = "config.yaml"


class SubtitleExtractionError(Exception):
    pass


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Loads config.yaml over the built-in defaults. A missing default file is fine;
    a missing file that was asked for explicitly is not.
    """
    explicit = path is not None or "MKV_TIDY_CONFIG" in os.environ
    path = path or os.environ.get("MKV_TIDY_CONFIG") or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        if explicit:
            logger.critical(f"Config file not found: {path}")
            sys.exit(1)
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    defaults = AppConfig().model_dump()
    try:
        return AppConfig.model_validate(_merge(defaults, data))
    except ValidationError as e:
        logger.critical(f"Invalid config file {path}: {e}")
        sys.exit(1)


class VideoTidyApp:
    def __init__(self, config: AppConfig, command: str, input_file: str):
        self.config = config
        self.command = command
        self.input_file = input_file
        self.output_file = get_output_filename(input_file, command, config.output_ext)
        self.ffprobe = FFprobeWrapper(config.ffprobe_path)
        self.analyzer = Analyzer(config)
        # "info" never runs ffmpeg
        self.converter = Converter(config) if command != "info" else None

    async def run(self) -> None:
        info = await self.ffprobe.get_media_info(self.input_file)
        print_file_info(info, "Input file info", self.config)

        if self.command == "info":
            return

        options = self.config.profile(self.command)
        logger.debug(f"Options for {self.command}: {options.model_dump()}")

        if options.extract_only:
            subs = self.analyzer.text_subtitles(info)
            if not subs:
                raise StreamSelectionError("No text English subtitles were found in the video file.")
            await self.wait_for_extractions(self.start_extractions(info, subs))
            return

        audio_encoder = await self.converter.audio_encoder() if options.convert_audio else self.config.audio_codec
        plan = self.analyzer.plan(info, options, audio_encoder)

        extractions: List[asyncio.Task] = []
        if options.extract_subs:
            if plan.text_subtitles:
                extractions = self.start_extractions(info, plan.text_subtitles)
            else:
                logger.warning("No text English subtitles were found in the video file.")

        try:
            await self.convert(info, plan)
        except BaseException:
            # Let running extractions finish before the transcode error propagates
            await asyncio.gather(*extractions, return_exceptions=True)
            raise
        await self.wait_for_extractions(extractions)

        if options.ocr_subs and plan.output_streams.subtitle:
            await self.run_ocr()

        output_info = await self.ffprobe.get_media_info(self.output_file)
        print_file_info(output_info, "Output file info", self.config)

    async def convert(self, info: MediaInfo, plan: EncodePlan) -> None:
        video = info.primary_video
        source_fps = video.fps if video else 0.0

        def on_progress(progress):
            print_progress(format_progress(progress, source_fps, info.duration_seconds))

        logger.info("Running ffmpeg command...")
        await self.converter.transcode(info, plan, self.output_file, on_progress)
        print_success("Command finished successfully!")

    def start_extractions(self, info: MediaInfo, subs: List[SubtitleStream]) -> List[asyncio.Task]:
        """
        Starts one ffmpeg per subtitle stream without waiting for any of them.
        """
        logger.info("Extracting text subtitles...")
        output_paths = get_subtitle_filenames(info.path, subs)
        return [
            asyncio.create_task(self.extract_subtitle(info, stream, output_path))
            for stream, output_path in zip(subs, output_paths)
        ]

    async def extract_subtitle(self, info: MediaInfo, stream: SubtitleStream, output_path: str) -> None:
        video = info.primary_video
        source_fps = video.fps if video else 0.0

        def on_progress(progress):
            print_progress(
                format_progress(progress, source_fps, info.duration_seconds, stream.index),
                is_extract=True,
            )

        try:
            await self.converter.extract_subtitle(info, stream, output_path, on_progress)
        except CommandError as e:
            logger.error(
                f"Error extracting subtitle from stream #{stream.index} to {output_path}: "
                f"{e.stderr.strip() or e}"
            )
            raise
        print_success(f"Subtitle #{stream.index} extracted to {output_path}")

    async def wait_for_extractions(self, tasks: List[asyncio.Task]) -> None:
        if not tasks:
            return

        results = await asyncio.gather(*tasks, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        for error in failures:
            # CommandErrors were already logged with their stream
            if not isinstance(error, CommandError):
                logger.error(f"Error extracting subtitle: {error}")
        if failures:
            raise SubtitleExtractionError(
                f"{len(failures)} of {len(tasks)} subtitle extraction(s) failed"
            ) from failures[0]

    async def run_ocr(self) -> None:
        if not self.converter.ocr_available():
            logger.warning(f"{self.config.ocr_tool} not found, skipping subtitle OCR")
            return
        await self.converter.ocr_subtitles(self.output_file)
        print_success("Subtitle OCR finished successfully!")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mkv-tidy",
        description="Clean up and convert the streams of a downloaded video file.",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("input_file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except SystemExit as e:
        return 0 if e.code == 0 else 1

    config = load_config(args.config)
    if config.log_file:
        add_file_handler(logger, config.log_file)

    if not os.path.exists(args.input_file):
        logger.error(f"Input file not found: {args.input_file}")
        return 1

    try:
        app = VideoTidyApp(config, args.command, args.input_file)
        logger.debug("Starting...")
        asyncio.run(app.run())
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except (ProbeError, StreamSelectionError, SubtitleExtractionError) as e:
        logger.error(str(e))
        return 1
    except CommandError as e:
        logger.error(f"Error running {os.path.basename(e.cmd[0])}: {e.stderr.strip() or e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Stopping...")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
