from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConversionOptions(BaseModel):
    """
    Switches for a single clean/convert run. Not persisted.
    """
    model_config = ConfigDict(extra="forbid")

    convert_audio: bool = False
    convert_video: bool = False
    force_convert: bool = False  # Re-encode video even if already in the target codec
    extract_subs: bool = False
    extract_only: bool = False  # Stop after subtitle extraction
    ocr_subs: bool = False
    preset: str = "slow"
    quality: int = 24  # CRF


def default_profiles() -> Dict[str, Dict[str, Any]]:
    return {
        "extract-subs": {"extract_subs": True, "extract_only": True},
        "clean": {"extract_subs": True},
        "convert-audio": {"convert_audio": True},
        "convert-video": {"convert_video": True},
        "full": {
            "extract_subs": True,
            "convert_audio": True,
            "convert_video": True,
            "ocr_subs": True,
        },
        "force-full": {
            "extract_subs": True,
            "convert_audio": True,
            "convert_video": True,
            "ocr_subs": True,
            "force_convert": True,
            "preset": "medium",
            "quality": 26,
        },
    }


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # None means "look it up on PATH"
    ffprobe_path: Optional[str] = None
    ffmpeg_path: Optional[str] = None

    output_format: str = "matroska"
    output_ext: str = "mkv"
    language: str = "eng"

    video_codec: str = "hevc"
    video_encoder: str = "libx265"
    audio_codec: str = "aac"
    preferred_audio_encoder: str = "libfdk_aac"

    ocr_tool: str = "pgsrip"
    ocr_language: str = "en"
    ocr_workers: int = 4
    ocr_tag: str = "ocr"

    log_file: Optional[str] = None

    profiles: Dict[str, ConversionOptions] = Field(
        default_factory=lambda: {
            name: ConversionOptions(**opts) for name, opts in default_profiles().items()
        }
    )

    def profile(self, command: str) -> ConversionOptions:
        if command not in self.profiles:
            raise KeyError(f"Unknown profile: {command}")
        return self.profiles[command]
