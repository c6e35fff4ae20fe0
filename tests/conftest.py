import pytest

from models.options import AppConfig


@pytest.fixture
def config():
    return AppConfig(ffprobe_path="ffprobe", ffmpeg_path="ffmpeg")
