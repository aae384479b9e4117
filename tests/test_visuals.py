import base64
import io
from pathlib import Path

import httpx
import pytest
from PIL import Image

from fakes import FakeImageClient, FakeMediaTool
from quizreel.models.domain import Question
from quizreel.services.visuals import GRADIENT_PALETTE, FallbackVisualProvider, palette_for

SIZE = (36, 64)
QUESTION = Question(question="What is the capital of France?", answer="Paris")


def provider(workspace, media, **kwargs):
    return FallbackVisualProvider(media, workspace, size=SIZE, **kwargs)


def test_strategy_order_is_explicit_data(workspace, media):
    assert provider(workspace, media).strategy_names == ["explicit", "ai", "gradient", "color", "placeholder"]


def test_palette_is_cyclic_and_deterministic():
    assert palette_for(0) == GRADIENT_PALETTE[0]
    assert palette_for(len(GRADIENT_PALETTE) + 2) == palette_for(2)


def test_gradient_when_providers_disabled(workspace, media):
    asset = provider(workspace, media).resolve(QUESTION, 1)
    assert asset.source == "gradient"
    assert asset.path == workspace.path("background", 1, ".png")
    _, start, end, size = media.calls_to("gradient_image")[0]
    assert (start, end) == GRADIENT_PALETTE[1]
    assert size == SIZE


def test_same_index_resolves_the_same_way(workspace, media):
    visuals = provider(workspace, media)
    visuals.resolve(QUESTION, 3)
    visuals.resolve(QUESTION, 3)
    first, second = media.calls_to("gradient_image")
    assert first == second


def png_bytes(color="red"):
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


def data_uri(data, mime="image/png"):
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


def test_explicit_inline_image_is_fitted_to_frame(workspace, media):
    question = Question(question="Who painted this?", answer="Monet", image=data_uri(png_bytes()))
    asset = provider(workspace, media).resolve(question, 0)
    assert asset.source == "explicit"
    assert asset.path == workspace.path("background", 0, ".png")
    source, output, size = media.calls_to("fit_image")[0]
    assert source.endswith("question_image_0.png")
    assert (output, size) == (asset.path, SIZE)
    assert not Path(source).exists()
    assert media.calls_to("gradient_image") == []


def test_explicit_url_image_is_fetched(workspace, media, monkeypatch):
    def fake_get(url, **kwargs):
        return httpx.Response(200, content=png_bytes("blue"), request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", fake_get)
    question = Question(question="Which city is this?", answer="Rome", image="https://cdn.example.com/rome.png?w=1")
    asset = provider(workspace, media).resolve(question, 2)
    assert asset.source == "explicit"
    assert media.calls_to("fit_image")[0][0].endswith("question_image_2.png")


@pytest.mark.parametrize(
    "image",
    [
        data_uri(b"this is definitely not an image"),
        "data:image/png;base64,***",
    ],
)
def test_undecodable_explicit_image_falls_back_to_gradient(workspace, media, image):
    question = Question(question="Who painted this?", answer="Monet", image=image)
    asset = provider(workspace, media).resolve(question, 0)
    assert asset.source == "gradient"
    assert media.calls_to("fit_image") == []


def test_html_error_page_from_image_url_falls_back(workspace, media, monkeypatch):
    def fake_get(url, **kwargs):
        return httpx.Response(200, content=b"<html>rate limited</html>", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", fake_get)
    question = Question(question="Which city is this?", answer="Rome", image="https://cdn.example.com/rome.jpg")
    assert provider(workspace, media).resolve(question, 0).source == "gradient"


def test_server_paths_are_never_read(workspace, media, tmp_path):
    secret = tmp_path / "secret.png"
    secret.write_bytes(png_bytes())
    question = Question(question="Which city is this?", answer="Rome", image=str(secret))
    asset = provider(workspace, media).resolve(question, 0)
    assert asset.source == "gradient"
    assert media.calls_to("fit_image") == []
    assert not any(path.name.startswith("question_image") for path in Path(workspace.root).iterdir())


def test_ai_image_is_fitted_to_frame(workspace, media):
    images = FakeImageClient()
    asset = provider(workspace, media, image_client=images, ai_enabled=True).resolve(QUESTION, 0)
    assert asset.source == "ai"
    assert images.prompts[0].startswith("Beautiful landscape featuring capital france")
    source, output, size = media.calls_to("fit_image")[0]
    assert output == asset.path
    assert size == SIZE
    assert not Path(source).exists()


def test_ai_disabled_flag_skips_provider(workspace, media):
    images = FakeImageClient()
    asset = provider(workspace, media, image_client=images, ai_enabled=False).resolve(QUESTION, 0)
    assert asset.source == "gradient"
    assert images.prompts == []


def test_ai_failure_falls_back_to_gradient(workspace, media):
    asset = provider(workspace, media, image_client=FakeImageClient(fail=True), ai_enabled=True).resolve(QUESTION, 0)
    assert asset.source == "gradient"


def test_gradient_failure_falls_back_to_color(workspace):
    media = FakeMediaTool(fail_on={"gradient_image"})
    asset = provider(workspace, media).resolve(QUESTION, 4)
    assert asset.source == "color"
    assert media.calls_to("color_image")[0][1] == GRADIENT_PALETTE[4][0]


@pytest.mark.parametrize("down", [{"gradient_image", "color_image"}, {"gradient_image", "color_image", "fit_image"}])
def test_all_tool_strategies_down_yields_placeholder(workspace, down):
    media = FakeMediaTool(fail_on=down)
    visuals = provider(workspace, media, image_client=FakeImageClient(fail=True), ai_enabled=True)
    asset = visuals.resolve(QUESTION, 0)
    assert asset.source == "placeholder"
    with Image.open(asset.path) as image:
        assert image.size == SIZE


def test_title_card_ignores_question_providers(workspace, media):
    images = FakeImageClient()
    asset = provider(workspace, media, image_client=images, ai_enabled=True).title_card()
    assert asset.source == "gradient"
    assert asset.path == workspace.path("intro_background", None, ".png")
    assert images.prompts == []
