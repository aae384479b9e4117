import pytest

from fakes import FakeMediaTool
from quizreel.config import Settings
from quizreel.models.domain import Question, TimingConfig
from quizreel.services.duration import DurationAdjuster
from quizreel.storage.workspace import JobWorkspace


@pytest.fixture
def media():
    return FakeMediaTool()


@pytest.fixture
def timing():
    return TimingConfig()


@pytest.fixture
def workspace(tmp_path):
    return JobWorkspace(tmp_path / "work" / "job")


@pytest.fixture
def adjuster(media):
    return DurationAdjuster(media, tolerance=0.1)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        work_dir=str(tmp_path / "work"),
        output_dir=str(tmp_path / "outputs"),
        assets_dir=str(tmp_path / "assets"),
        cache_dir=str(tmp_path / "cache"),
        video_width=108,
        video_height=192,
    )


@pytest.fixture
def questions():
    return [
        Question(question="What is the capital of France?", answer="Paris"),
        Question(question="In which year did the battle of Grunwald happen?", answer="1410"),
        Question(question="Which planet is known as the red planet?", answer="Mars"),
        Question(question="How many legs does a spider have?", answer="Eight"),
    ]
