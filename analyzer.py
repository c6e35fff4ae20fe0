from typing import Any, Dict, List

from pydantic import BaseModel, Field

from models.media_info import AudioStream, MediaInfo, Streams, SubtitleStream, VideoStream
from models.options import AppConfig, ConversionOptions
from logger import setup_logger

logger = setup_logger()


class StreamSelectionError(Exception):
    """A required class of streams is missing from the input."""


class EncodePlan(BaseModel):
    # Input stream selectors in output order, e.g. ["v:0", "a:0", "s:1"]
    selectors: List[str] = []
    output_options: Dict[str, Any] = {}
    # Streams that will end up in the output file
    output_streams: Streams = Field(default_factory=Streams)
    # English text subtitles, extracted to separate files instead of muxed
    text_subtitles: List[SubtitleStream] = []
    convert_video: bool = False


class Analyzer:
    def __init__(self, config: AppConfig):
        self.config = config

    def is_english(self, lang: str) -> bool:
        return lang == self.config.language

    def english_audio(self, info: MediaInfo) -> List[AudioStream]:
        return [s for s in info.streams.audio if self.is_english(s.lang)]

    def text_subtitles(self, info: MediaInfo) -> List[SubtitleStream]:
        return [s for s in info.streams.subtitle if s.text_based and self.is_english(s.lang)]

    def image_subtitles(self, info: MediaInfo) -> List[SubtitleStream]:
        return [s for s in info.streams.subtitle if not s.text_based and self.is_english(s.lang)]

    def should_convert_video(self, stream: VideoStream, options: ConversionOptions) -> bool:
        if not options.convert_video:
            return False
        return options.force_convert or stream.codec_name != self.config.video_codec

    def should_convert_audio(self, stream: AudioStream, options: ConversionOptions) -> bool:
        return options.convert_audio and stream.codec_name != self.config.audio_codec

    def plan(self, info: MediaInfo, options: ConversionOptions, audio_encoder: str = "aac") -> EncodePlan:
        """
        Decides what happens to every stream and builds the ffmpeg output options.
        """
        video = info.primary_video
        if video is None:
            raise StreamSelectionError("No video streams found in the video file.")

        audio = self.english_audio(info)
        if not audio:
            raise StreamSelectionError("No English audio streams found in the video file.")

        lang_tag = f"language={self.config.language}"
        plan = EncodePlan(text_subtitles=self.text_subtitles(info))
        opts: Dict[str, Any] = {
            "format": self.config.output_format,
            "map_metadata": -1,
        }

        # 1. Video: primary stream only, title blanked
        plan.selectors.append(f"v:{video.index}")
        plan.convert_video = self.should_convert_video(video, options)
        if plan.convert_video:
            opts["c:v"] = self.config.video_encoder
            opts["preset"] = options.preset
            opts["crf"] = options.quality
            if self.config.video_codec == "hevc":
                opts["pix_fmt"] = "yuv420p10le"
                opts["profile:v"] = "main10"
        else:
            opts["c:v"] = "copy"
        opts["metadata:s:v:0"] = [lang_tag, "title="]
        plan.output_streams.video.append(video)

        # 2. Audio: English only
        for out_idx, stream in enumerate(audio):
            plan.selectors.append(f"a:{stream.index}")
            codec = audio_encoder if self.should_convert_audio(stream, options) else "copy"
            opts[f"c:a:{out_idx}"] = codec
            opts[f"metadata:s:a:{out_idx}"] = [lang_tag, f"title={stream.title}"]
            plan.output_streams.audio.append(stream)
            logger.debug(f"Audio #{stream.index} ({stream.codec_name}) -> {codec} \"{stream.title}\"")

        dropped = len(info.streams.audio) - len(audio)
        if dropped:
            logger.info(f"Dropping {dropped} non-English audio stream(s)")

        # 3. Subtitles: English image-based streams are muxed as-is
        for out_idx, stream in enumerate(self.image_subtitles(info)):
            plan.selectors.append(f"s:{stream.index}")
            opts[f"c:s:{out_idx}"] = "copy"
            metadata = [lang_tag]
            if stream.title:
                # Re-tag so the existing title survives the metadata strip
                logger.debug(f"Subtitle title already set: {stream.title}")
                metadata.append(f"title={stream.title}")
            opts[f"metadata:s:s:{out_idx}"] = metadata
            plan.output_streams.subtitle.append(stream)

        plan.output_options = opts
        return plan
