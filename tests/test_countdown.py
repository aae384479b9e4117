from pathlib import Path

import pytest

from fakes import FakeMediaTool
from quizreel.models.domain import TimingConfig
from quizreel.services.countdown import CUES, CountdownComposer, countdown_layout
from quizreel.services.duration import DurationAdjuster


def composer(media, workspace, timing, assets_dir="missing-assets"):
    return CountdownComposer(media, DurationAdjuster(media), workspace, timing, assets_dir=str(assets_dir))


def test_layout_for_three_second_pause():
    layout = countdown_layout(3.0)
    assert [(cue.name, round(length, 3), round(gap, 3)) for cue, length, gap in layout] == [
        ("tick", 0.1, 0.9),
        ("tick", 0.1, 0.9),
        ("dong", 0.3, 0.7),
    ]


@pytest.mark.parametrize("pause", [0.6, 1.0, 2.0, 3.0, 4.5])
def test_layout_always_sums_to_pause(pause):
    total = sum(length + gap for _, length, gap in countdown_layout(pause))
    assert total == pytest.approx(pause)


def test_disabled_countdown_is_plain_silence_every_time(workspace, media):
    timing = TimingConfig(countdown_enabled=False)
    countdown = composer(media, workspace, timing)
    first = countdown.build(0)
    second = countdown.build(0)
    assert first.duration == second.duration == timing.pause_duration
    assert media.calls_to("tone") == []
    assert [name for name, _ in media.calls] == ["silence", "silence"]


def test_synthesized_cues_when_assets_missing(workspace, media, timing):
    asset = composer(media, workspace, timing).build(1)
    assert asset.path == workspace.path("countdown", 1, ".wav")
    assert media.durations[asset.path] == pytest.approx(timing.pause_duration)
    assert [call[1] for call in media.calls_to("tone")] == [cue.frequency for cue in CUES]
    parts = media.calls_to("concat_audio")[0][0]
    assert len(parts) == 6
    assert not any(Path(part).exists() for part in parts)


def test_cue_files_are_cut_to_length(workspace, media, timing, tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "tick.mp3").write_bytes(b"speech:0.45")
    (assets / "dong.mp3").write_bytes(b"speech:1.2")
    asset = composer(media, workspace, timing, assets).build(0)
    assert media.calls_to("tone") == []
    assert media.durations[asset.path] == pytest.approx(timing.pause_duration)
    trims = [call[2] for call in media.calls_to("trim")]
    assert trims == pytest.approx([0.1, 0.1, 0.3])


def test_assembly_failure_falls_back_to_silence(workspace, timing):
    media = FakeMediaTool(fail_on={"concat_audio"})
    asset = composer(media, workspace, timing).build(0)
    assert asset.path == workspace.path("pause_silence", 0, ".wav")
    assert asset.duration == timing.pause_duration


def test_unreadable_cue_file_falls_back_to_silence(workspace, media, timing, tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "tick.mp3").write_bytes(b"not audio")
    asset = composer(media, workspace, timing, assets).build(0)
    assert asset.path == workspace.path("pause_silence", 0, ".wav")
    assert asset.duration == timing.pause_duration
