import pytest
from langchain_core.language_models import FakeListLLM
from langchain_core.runnables import RunnableLambda

from vocora.core.config import ModelConfig
from vocora.core.errors import EmptyInput, MalformedResponse, NetworkFailure
from vocora.core.story import StoryGenerator, clean_selection


def echo_prompt(prompt_value):
    return prompt_value.to_string()


def test_generates_stripped_story():
    generator = StoryGenerator(llm=FakeListLLM(responses=["  Once, an apple fell.  "]))
    assert generator.generate(["apple"]) == "Once, an apple fell."


def test_prompt_lists_the_selection_once():
    generator = StoryGenerator(models=ModelConfig(story_sentences=4), llm=RunnableLambda(echo_prompt))
    prompt = generator.generate(["apple", " river ", "Apple", ""])
    assert "apple, river" in prompt
    assert "about 4 sentences" in prompt


def test_empty_selection_never_calls_the_model():
    calls = []

    def model(prompt_value):
        calls.append(prompt_value)
        return "story"

    generator = StoryGenerator(llm=RunnableLambda(model))
    with pytest.raises(EmptyInput):
        generator.generate(["", "   "])
    assert calls == []


def test_model_failure_is_network_failure():
    def model(prompt_value):
        raise RuntimeError("rate limited")

    with pytest.raises(NetworkFailure):
        StoryGenerator(llm=RunnableLambda(model)).generate(["apple"])


def test_blank_model_output_is_malformed():
    with pytest.raises(MalformedResponse):
        StoryGenerator(llm=FakeListLLM(responses=["   "])).generate(["apple"])


def test_clean_selection_keeps_first_spelling():
    assert clean_selection(["Run", "run", " jump ", None, "RUN"]) == ["Run", "jump"]
