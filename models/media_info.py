from pydantic import BaseModel, ConfigDict, Field


class AudioStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    lang: str = "eng"
    codec_name: str = ""
    formatted_codec_name: str = ""
    channel_layout: str = ""  # Formatted label, e.g. "5.1 Surround"
    channels: int = 0
    orig_title: str = ""
    title: str = ""


class VideoStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    lang: str = "eng"
    codec_name: str = ""
    formatted_codec_name: str = ""
    resolution: str = ""
    fps: float = 0.0
    title: str = ""


class SubtitleStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    lang: str = "und"
    codec_name: str = ""
    formatted_codec_name: str = ""
    title: str = ""
    text_based: bool = False


class Streams(BaseModel):
    video: list[VideoStream] = []
    audio: list[AudioStream] = []
    subtitle: list[SubtitleStream] = []


class MediaInfo(BaseModel):
    path: str
    size_bytes: int = 0
    duration_seconds: float = 0.0
    container_format: str = "unknown"
    streams: Streams = Field(default_factory=Streams)

    @property
    def primary_video(self):
        return self.streams.video[0] if self.streams.video else None
