"""Last-resort media writers that do not go through ffmpeg."""

from __future__ import annotations

import wave

import numpy as np
from PIL import Image


def _rgb(value: str) -> tuple[int, int, int]:
    hex_value = value.strip().lstrip("#")
    if len(hex_value) == 3:
        hex_value = "".join(ch * 2 for ch in hex_value)
    if len(hex_value) != 6:
        return (0, 0, 0)
    try:
        return tuple(int(hex_value[i : i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]
    except ValueError:
        return (0, 0, 0)


def write_placeholder_image(path: str, size: tuple[int, int], colors: tuple[str, str]) -> str:
    width, height = size
    start = np.array(_rgb(colors[0]), dtype=np.float32)
    end = np.array(_rgb(colors[1]), dtype=np.float32)
    ramp = np.linspace(0.0, 1.0, num=height, dtype=np.float32)[:, None, None]
    column = start + (end - start) * ramp
    frame = np.broadcast_to(column, (height, width, 3)).astype(np.uint8)
    Image.fromarray(np.ascontiguousarray(frame)).save(path, format="PNG")
    return path


def write_silent_wav(path: str, seconds: float, sample_rate: int = 48000, channels: int = 2) -> str:
    frames = max(int(round(seconds * sample_rate)), 1)
    samples = np.zeros((frames, channels), dtype=np.int16)
    with wave.open(path, "wb") as handle:
        handle.setnchannels(channels)
        handle.setsampwidth(2)
        handle.setframerate(sample_rate)
        handle.writeframes(samples.tobytes())
    return path
