import wave

import numpy as np
from PIL import Image

from quizreel.media.fallback import write_placeholder_image, write_silent_wav


def test_placeholder_image_is_a_vertical_gradient(tmp_path):
    path = write_placeholder_image(str(tmp_path / "bg.png"), (90, 160), ("#667eea", "#764ba2"))
    with Image.open(path) as image:
        assert image.size == (90, 160)
        pixels = np.asarray(image.convert("RGB"))
    assert tuple(pixels[0, 0]) == (0x66, 0x7E, 0xEA)
    assert tuple(pixels[-1, -1]) == (0x76, 0x4B, 0xA2)
    assert (pixels[0] == pixels[0, 0]).all()


def test_placeholder_image_survives_bad_colors(tmp_path):
    path = write_placeholder_image(str(tmp_path / "bg.png"), (10, 10), ("not-a-color", "#fff"))
    with Image.open(path) as image:
        assert image.getpixel((0, 0)) == (0, 0, 0)


def test_silent_wav_has_exact_length(tmp_path):
    path = write_silent_wav(str(tmp_path / "pause.wav"), 3.0, sample_rate=8000, channels=2)
    with wave.open(path, "rb") as handle:
        assert handle.getnframes() == 24000
        assert handle.getnchannels() == 2
        frames = np.frombuffer(handle.readframes(handle.getnframes()), dtype=np.int16)
    assert not frames.any()
