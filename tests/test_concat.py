from pathlib import Path

import pytest

from fakes import FakeMediaTool
from quizreel.errors import ConcatenationError
from quizreel.models.domain import Segment
from quizreel.services.concat import Concatenator, manifest_line


def segments(media, workspace, count=3, duration=8.0):
    result = []
    for index in range(count):
        path = workspace.path("segment", index, ".mp4")
        media.render_clip(
            media.color_image(workspace.path("bg", index, ".png"), "#000"),
            media.silence(workspace.path("audio", index, ".wav"), duration),
            path,
            [],
            duration,
        )
        result.append(Segment(path=path, index=index, duration=duration))
    return result


def test_manifest_line_quotes_paths(tmp_path):
    path = tmp_path / "it's here.mp4"
    assert manifest_line(str(path)) == f"file '{path.resolve().parent}/it'\\''s here.mp4'"


def test_concatenation_sums_segments_in_order(media, workspace, tmp_path):
    clips = segments(media, workspace)
    output = str(tmp_path / "out" / "final.mp4")
    assert Concatenator(media, workspace).concatenate(clips, output) == output
    assert media.durations[output] == pytest.approx(24.0)
    manifest, _ = media.calls_to("concat_copy")[0]
    assert not Path(manifest).exists()
    assert not any(Path(clip.path).exists() for clip in clips)


def test_manifest_follows_segment_order(media, workspace, tmp_path):
    clips = segments(media, workspace)
    seen = []
    original = media.concat_copy

    def capture(manifest, output):
        seen.extend(Path(manifest).read_text(encoding="utf-8").splitlines())
        return original(manifest, output)

    media.concat_copy = capture
    Concatenator(media, workspace).concatenate(list(reversed(clips)), str(tmp_path / "final.mp4"))
    assert seen == [manifest_line(clip.path) for clip in reversed(clips)]


def test_no_segments_is_an_error(media, workspace, tmp_path):
    with pytest.raises(ConcatenationError):
        Concatenator(media, workspace).concatenate([], str(tmp_path / "final.mp4"))


def test_failure_leaves_no_partial_output(workspace, tmp_path):
    media = FakeMediaTool()
    clips = segments(media, workspace)
    media.fail_on.add("concat_copy")
    output = tmp_path / "final.mp4"
    output.write_bytes(b"partial")
    with pytest.raises(ConcatenationError, match="Joining the clips"):
        Concatenator(media, workspace).concatenate(clips, str(output))
    assert not output.exists()
    assert all(Path(clip.path).exists() for clip in clips)
