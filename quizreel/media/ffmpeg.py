from __future__ import annotations

import logging
import shutil
import subprocess
import textwrap
from dataclasses import dataclass
from typing import Optional, Sequence


class MediaToolError(RuntimeError):
    """Raised when an ffmpeg or ffprobe invocation does not succeed."""

    def __init__(self, summary: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(summary)
        self.summary = summary
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class FFmpegBins:
    ffmpeg: str
    ffprobe: str


def find_ffmpeg(ffmpeg_path: str = "", ffprobe_path: str = "") -> FFmpegBins:
    # A missing binary surfaces per call as MediaToolError.
    ffmpeg = (ffmpeg_path or "").strip() or shutil.which("ffmpeg") or "ffmpeg"
    ffprobe = (ffprobe_path or "").strip() or shutil.which("ffprobe") or "ffprobe"
    return FFmpegBins(ffmpeg=ffmpeg, ffprobe=ffprobe)


@dataclass(frozen=True)
class EncodeProfile:
    """Encode settings shared by every clip so the final join can stream-copy."""

    width: int = 1080
    height: int = 1920
    fps: int = 30
    video_codec: str = "libx264"
    preset: str = "veryfast"
    pixel_format: str = "yuv420p"
    audio_codec: str = "aac"
    sample_rate: int = 48000
    channels: int = 2

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def channel_layout(self) -> str:
        return "mono" if self.channels == 1 else "stereo"

    @classmethod
    def from_settings(cls, settings) -> "EncodeProfile":
        return cls(
            width=settings.video_width,
            height=settings.video_height,
            fps=settings.fps,
            video_codec=settings.video_codec,
            preset=settings.video_preset,
            pixel_format=settings.pixel_format,
            audio_codec=settings.audio_codec,
            sample_rate=settings.audio_sample_rate,
            channels=settings.audio_channels,
        )


@dataclass(frozen=True)
class TextOverlay:
    text: str
    font_size: int
    color: str
    y: str
    box_color: str = "black@0.6"
    box_border: int = 16


_OPTION_SPECIALS = "\\':"
_GRAPH_SPECIALS = "\\',;[]"


def _backslash(value: str, specials: str) -> str:
    return "".join("\\" + ch if ch in specials else ch for ch in value)


def escape_drawtext(text: str) -> str:
    """Escape a drawtext option value for use inside ``-filter_complex``.

    The value is unescaped twice by ffmpeg: once by the filtergraph parser and
    once by the filter option parser, so it is escaped for both levels.
    """
    return _backslash(_backslash(text, _OPTION_SPECIALS), _GRAPH_SPECIALS)


def wrap_text(text: str, width: int) -> str:
    lines = textwrap.wrap(text.strip(), width=max(1, width), break_long_words=True)
    return "\n".join(lines) if lines else text.strip()


def _hex_color(value: str) -> str:
    value = value.strip()
    if value.startswith("#"):
        return "0x" + value[1:]
    return value


def _decode_process_output(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class FFmpegTool:
    """Synchronous ffmpeg/ffprobe capability.

    Every operation blocks until the subprocess exits and raises
    :class:`MediaToolError` on failure. No retries happen here.
    """

    def __init__(
        self,
        bins: FFmpegBins | None = None,
        profile: EncodeProfile | None = None,
        timeout: float | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.bins = bins or find_ffmpeg()
        self.profile = profile or EncodeProfile()
        self.timeout = timeout
        self.log = logger or logging.getLogger(__name__)

    def run(self, args: Sequence[str], *, what: str) -> None:
        cmd = [self.bins.ffmpeg, "-hide_banner", "-loglevel", "error", "-y", *args]
        self.log.debug("running ffmpeg", extra={"what": what, "cmd": " ".join(cmd)})
        try:
            proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise MediaToolError(f"{what} timed out") from exc
        except OSError as exc:
            raise MediaToolError(f"{what} could not start ffmpeg: {exc.strerror or exc}") from exc
        if proc.returncode != 0:
            stderr = _decode_process_output(proc.stderr).strip()
            self.log.debug(
                "ffmpeg exited with error",
                extra={"what": what, "returncode": proc.returncode, "stderr": stderr[-2000:]},
            )
            raise MediaToolError(f"{what} failed", returncode=proc.returncode, stderr=stderr[-2000:])

    def probe_duration(self, path: str) -> float:
        cmd = [
            self.bins.ffprobe,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            path,
        ]
        try:
            proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise MediaToolError("duration probe timed out") from exc
        except OSError as exc:
            raise MediaToolError(f"duration probe could not start ffprobe: {exc.strerror or exc}") from exc
        if proc.returncode != 0:
            raise MediaToolError(
                "duration probe failed",
                returncode=proc.returncode,
                stderr=_decode_process_output(proc.stderr).strip(),
            )
        raw = _decode_process_output(proc.stdout).strip()
        try:
            return float(raw)
        except ValueError as exc:
            raise MediaToolError(f"duration probe returned {raw!r}") from exc

    def silence(self, output: str, seconds: float) -> str:
        source = f"anullsrc=channel_layout={self.profile.channel_layout}:sample_rate={self.profile.sample_rate}"
        self.run(
            ["-f", "lavfi", "-i", source, "-t", f"{seconds:.3f}", *self._audio_args(output), output],
            what="silence generation",
        )
        return output

    def tone(self, output: str, frequency: int, seconds: float) -> str:
        source = f"sine=frequency={frequency}:sample_rate={self.profile.sample_rate}:duration={seconds:.3f}"
        self.run(
            ["-f", "lavfi", "-i", source, "-t", f"{seconds:.3f}", *self._audio_args(output), output],
            what="tone generation",
        )
        return output

    def trim(self, source: str, output: str, seconds: float) -> str:
        # Keeps the start, no re-encode.
        self.run(["-i", source, "-t", f"{seconds:.3f}", "-vn", "-c", "copy", output], what="audio trim")
        return output

    def concat_audio(self, sources: Sequence[str], output: str) -> str:
        if not sources:
            raise MediaToolError("audio concatenation needs at least one input")
        args: list[str] = []
        for source in sources:
            args.extend(["-i", source])
        normalized = "".join(
            f"[{idx}:a]aresample={self.profile.sample_rate},"
            f"aformat=sample_rates={self.profile.sample_rate}:channel_layouts={self.profile.channel_layout}[a{idx}];"
            for idx in range(len(sources))
        )
        labels = "".join(f"[a{idx}]" for idx in range(len(sources)))
        graph = f"{normalized}{labels}concat=n={len(sources)}:v=0:a=1[out]"
        args.extend(["-filter_complex", graph, "-map", "[out]", *self._audio_args(output), output])
        self.run(args, what="audio concatenation")
        return output

    def gradient_image(self, output: str, start: str, end: str, size: tuple[int, int] | None = None) -> str:
        width, height = size or self.profile.size
        source = (
            f"gradients=s={width}x{height}:c0={_hex_color(start)}:c1={_hex_color(end)}"
            f":x0=0:y0=0:x1={width}:y1={height}:nb_colors=2:speed=0:d=1"
        )
        self.run(["-f", "lavfi", "-i", source, "-frames:v", "1", output], what="gradient image")
        return output

    def color_image(self, output: str, color: str, size: tuple[int, int] | None = None) -> str:
        width, height = size or self.profile.size
        source = f"color=c={_hex_color(color)}:s={width}x{height}:d=1"
        self.run(["-f", "lavfi", "-i", source, "-frames:v", "1", output], what="color image")
        return output

    def fit_image(self, source: str, output: str, size: tuple[int, int] | None = None) -> str:
        width, height = size or self.profile.size
        self.run(
            ["-i", source, "-vf", f"{self._fit_filter(width, height)},setsar=1", "-frames:v", "1", output],
            what="image scaling",
        )
        return output

    def render_clip(
        self,
        image: str,
        audio: str,
        output: str,
        overlays: Sequence[TextOverlay],
        duration: float,
        font_file: str = "",
    ) -> str:
        profile = self.profile
        video_chain = [self._fit_filter(profile.width, profile.height), "setsar=1", f"fps={profile.fps}"]
        video_chain.extend(self._drawtext(overlay, font_file) for overlay in overlays)
        video_chain.append(f"format={profile.pixel_format}")
        graph = f"[0:v]{','.join(video_chain)}[v];[1:a]apad[a]"
        args = [
            "-loop",
            "1",
            "-framerate",
            str(profile.fps),
            "-i",
            image,
            "-i",
            audio,
            "-filter_complex",
            graph,
            "-map",
            "[v]",
            "-map",
            "[a]",
            "-c:v",
            profile.video_codec,
            "-preset",
            profile.preset,
            "-pix_fmt",
            profile.pixel_format,
            "-r",
            str(profile.fps),
            "-c:a",
            profile.audio_codec,
            "-ar",
            str(profile.sample_rate),
            "-ac",
            str(profile.channels),
            "-t",
            f"{duration:.3f}",
            "-movflags",
            "+faststart",
            output,
        ]
        self.run(args, what="clip rendering")
        return output

    def concat_copy(self, manifest: str, output: str) -> str:
        self.run(
            ["-f", "concat", "-safe", "0", "-i", manifest, "-c", "copy", "-movflags", "+faststart", output],
            what="segment concatenation",
        )
        return output

    def _audio_args(self, output: str) -> list[str]:
        codec = "pcm_s16le" if output.lower().endswith(".wav") else self.profile.audio_codec
        return ["-c:a", codec, "-ar", str(self.profile.sample_rate), "-ac", str(self.profile.channels)]

    def _fit_filter(self, width: int, height: int) -> str:
        return (
            f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color=black"
        )

    def _drawtext(self, overlay: TextOverlay, font_file: str) -> str:
        options = [f"text={escape_drawtext(overlay.text)}", "expansion=none"]
        if font_file:
            options.append(f"fontfile={escape_drawtext(font_file)}")
        options.extend(
            [
                f"fontsize={overlay.font_size}",
                f"fontcolor={overlay.color}",
                "box=1",
                f"boxcolor={overlay.box_color}",
                f"boxborderw={overlay.box_border}",
                "line_spacing=10",
                "x=(w-text_w)/2",
                f"y={overlay.y}",
            ]
        )
        return "drawtext=" + ":".join(options)
