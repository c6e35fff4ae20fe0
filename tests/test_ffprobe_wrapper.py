import asyncio
import json

import pytest

from factories import audio_raw, subtitle_raw, video_raw
from utils.ffprobe_wrapper import FFprobeWrapper, ProbeError


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode

    async def communicate(self):
        return self._stdout, self._stderr


def fake_exec(process, calls):
    async def create_subprocess_exec(*cmd, **kwargs):
        calls.append(list(cmd))
        return process
    return create_subprocess_exec


@pytest.fixture
def movie(tmp_path):
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\0" * 2048)
    return str(path)


def probe_output():
    return {
        "streams": [video_raw(), audio_raw(), subtitle_raw(lang=None)],
        "format": {"format_name": "matroska,webm", "duration": "5400.123"},
    }


def test_parse_json(movie):
    info = FFprobeWrapper("ffprobe")._parse_json(probe_output(), movie)

    assert info.path == movie
    assert info.size_bytes == 2048
    assert info.duration_seconds == 5400.123
    assert info.container_format == "matroska"
    assert info.primary_video.fps == 23.98
    assert info.streams.audio[0].formatted_codec_name == "AC3"
    assert info.streams.subtitle[0].lang == "und"


def test_parse_json_without_format(movie):
    info = FFprobeWrapper("ffprobe")._parse_json({"streams": []}, movie)

    assert info.duration_seconds == 0.0
    assert info.container_format == "unknown"
    assert info.primary_video is None


def test_get_media_info_runs_ffprobe(monkeypatch, movie):
    calls = []
    process = FakeProcess(stdout=json.dumps(probe_output()).encode())
    monkeypatch.setattr("utils.ffprobe_wrapper.asyncio.create_subprocess_exec", fake_exec(process, calls))

    info = asyncio.run(FFprobeWrapper("/usr/bin/ffprobe").get_media_info(movie))

    assert calls == [[
        "/usr/bin/ffprobe", "-v", "quiet", "-print_format", "json",
        "-show_format", "-show_streams", movie,
    ]]
    assert len(info.streams.audio) == 1


def test_probe_failure(monkeypatch, movie):
    process = FakeProcess(stderr=b"Invalid data found when processing input\n", returncode=1)
    monkeypatch.setattr("utils.ffprobe_wrapper.asyncio.create_subprocess_exec", fake_exec(process, []))

    with pytest.raises(ProbeError, match="Invalid data found"):
        asyncio.run(FFprobeWrapper("ffprobe").probe(movie))


def test_probe_bad_json(monkeypatch, movie):
    process = FakeProcess(stdout=b"not json")
    monkeypatch.setattr("utils.ffprobe_wrapper.asyncio.create_subprocess_exec", fake_exec(process, []))

    with pytest.raises(ProbeError, match="Error parsing metadata"):
        asyncio.run(FFprobeWrapper("ffprobe").probe(movie))


def test_probe_missing_file(tmp_path):
    with pytest.raises(ProbeError, match="File not found"):
        asyncio.run(FFprobeWrapper("ffprobe").probe(str(tmp_path / "missing.mkv")))


def test_missing_ffprobe(monkeypatch):
    monkeypatch.setattr("utils.ffprobe_wrapper.shutil.which", lambda name: None)

    with pytest.raises(FileNotFoundError):
        FFprobeWrapper()
