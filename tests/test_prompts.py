from quizreel.services.prompts import ORIENTATION_PROMPT, QUALITY_PROMPT, ImageStyle, PromptBuilder, QuestionCategory


def test_geography_question():
    context = PromptBuilder().analyze("What is the capital of France?")
    assert context.category == QuestionCategory.GEOGRAPHY
    assert context.style == ImageStyle.PHOTOREALISTIC
    assert context.keywords == ["capital", "france"]


def test_history_question_gets_vintage_style():
    context = PromptBuilder().analyze("In which year did the battle of Grunwald happen?")
    assert context.category == QuestionCategory.HISTORY
    assert context.style == ImageStyle.VINTAGE
    assert context.keywords[0] == "battle"


def test_unmatched_question_is_general():
    prompt = PromptBuilder().build("Quick quiz: two plus two?")
    assert prompt.startswith("Beautiful scene related to quick quiz plus")


def test_prompt_is_vertical_and_high_quality():
    prompt = PromptBuilder().build("What is the capital of France?")
    assert prompt.startswith("Beautiful landscape featuring capital france")
    assert prompt.endswith(f"{QUALITY_PROMPT}, {ORIENTATION_PROMPT}")
