import wave
from pathlib import Path

import pytest

from fakes import FakeMediaTool
from quizreel.services.duration import DurationAdjuster


def speech(tmp_path, name, seconds):
    path = tmp_path / name
    path.write_bytes(f"speech:{seconds}".encode())
    return str(path)


def test_within_tolerance_is_left_alone(tmp_path, media, adjuster):
    path = speech(tmp_path, "q.mp3", 2.55)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == path
    assert asset.duration == pytest.approx(2.55)
    assert media.calls_to("trim") == []


def test_longer_audio_is_trimmed_from_the_start(tmp_path, media, adjuster):
    path = speech(tmp_path, "q.mp3", 4.0)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == str(tmp_path / "q_trimmed.mp3")
    assert asset.duration == 2.5
    assert media.durations[asset.path] == pytest.approx(2.5)


def test_shorter_audio_is_padded_with_silence(tmp_path, media, adjuster):
    path = speech(tmp_path, "a.mp3", 1.2)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == str(tmp_path / "a_padded.wav")
    assert abs(media.durations[asset.path] - 2.5) < 0.1
    assert not (tmp_path / "a_padding.wav").exists()
    silence = media.calls_to("silence")[0]
    assert silence[1] == pytest.approx(1.3)


@pytest.mark.parametrize("actual", [0.4, 2.0, 3.1, 9.0])
def test_adjusted_duration_is_within_tolerance(tmp_path, media, adjuster, actual):
    asset = adjuster.adjust(speech(tmp_path, "clip.mp3", actual), 2.5)
    assert abs(media._duration_of(asset.path) - 2.5) < 0.1


def test_probe_failure_returns_original(tmp_path):
    adjuster = DurationAdjuster(FakeMediaTool(fail_on={"probe_duration"}))
    path = speech(tmp_path, "q.mp3", 4.0)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == path
    assert asset.duration is None


def test_trim_failure_returns_original(tmp_path):
    adjuster = DurationAdjuster(FakeMediaTool(fail_on={"trim"}))
    path = speech(tmp_path, "q.mp3", 4.0)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == path
    assert asset.duration == pytest.approx(4.0)


def test_pad_failure_returns_original(tmp_path):
    adjuster = DurationAdjuster(FakeMediaTool(fail_on={"concat_audio"}))
    path = speech(tmp_path, "q.mp3", 1.0)
    asset = adjuster.adjust(path, 2.5)
    assert asset.path == path
    assert asset.duration == pytest.approx(1.0)


def test_silence_uses_ffmpeg(tmp_path, media, adjuster):
    asset = adjuster.silence(str(tmp_path / "pause.wav"), 3.0)
    assert asset.duration == 3.0
    assert media.durations[asset.path] == 3.0


def test_silence_falls_back_to_direct_samples(tmp_path):
    adjuster = DurationAdjuster(FakeMediaTool(fail_on={"silence"}), sample_rate=8000, channels=1)
    asset = adjuster.silence(str(tmp_path / "pause.mp3"), 1.5)
    assert Path(asset.path).suffix == ".wav"
    assert asset.duration == 1.5
    with wave.open(asset.path, "rb") as handle:
        assert handle.getnframes() == 12000
        assert handle.getnchannels() == 1
