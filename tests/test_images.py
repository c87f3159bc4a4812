from types import SimpleNamespace

import pytest
import requests
from openai import OpenAIError

from vocora.core.config import APIConfig, ModelConfig
from vocora.core.errors import EmptyInput, MalformedResponse, NetworkFailure
from vocora.core.images import HuggingFaceImageProvider, ImageGenerator, OpenAIImageProvider

from conftest import FakeResponse, FakeSession


class FakeImages:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def generate(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def openai_generator(result):
    images = FakeImages(result)
    client = SimpleNamespace(images=images)
    provider = OpenAIImageProvider(ModelConfig(), APIConfig(), client=client)
    return ImageGenerator(provider=provider), images


def test_openai_returns_hosted_url():
    generator, images = openai_generator(SimpleNamespace(data=[SimpleNamespace(url="https://img.test/1.png")]))
    assert generator.generate("A cat in the rain.") == "https://img.test/1.png"
    assert images.calls[0]["model"] == "dall-e-2"
    assert images.calls[0]["size"] == "512x512"
    assert images.calls[0]["prompt"] == "A cat in the rain."


def test_openai_base64_becomes_data_uri():
    generator, _ = openai_generator(SimpleNamespace(data=[SimpleNamespace(url=None, b64_json="aGk=")]))
    assert generator.generate("story") == "data:image/png;base64,aGk="


def test_openai_without_images_is_malformed():
    generator, _ = openai_generator(SimpleNamespace(data=[]))
    with pytest.raises(MalformedResponse):
        generator.generate("story")


def test_openai_error_is_network_failure():
    generator, _ = openai_generator(OpenAIError("quota"))
    with pytest.raises(NetworkFailure):
        generator.generate("story")


@pytest.mark.parametrize("story", ["", "   \n"])
def test_empty_story_is_rejected_before_the_provider(story):
    generator, images = openai_generator(SimpleNamespace(data=[]))
    with pytest.raises(EmptyInput):
        generator.generate(story)
    assert images.calls == []


def hf_generator(*responses):
    session = FakeSession(list(responses))
    models = ModelConfig(image_provider="huggingface", huggingface_image_model="org/model")
    api = APIConfig(huggingface_url="https://hf.test/models", huggingface_token="hf_x")
    provider = HuggingFaceImageProvider(models, api, session=session)
    return ImageGenerator(models, api, provider=provider), session


def test_huggingface_returns_data_uri():
    generator, session = hf_generator(
        FakeResponse(200, content=b"\x89PNG", headers={"content-type": "image/png"})
    )
    assert generator.generate("A cat.") == "data:image/png;base64,iVBORw=="
    call = session.calls[0]
    assert call["url"] == "https://hf.test/models/org/model"
    assert call["json"] == {"inputs": "A cat."}
    assert call["headers"]["Authorization"] == "Bearer hf_x"


def test_huggingface_error_status_is_network_failure():
    generator, _ = hf_generator(FakeResponse(503, {"error": "Model is loading"}))
    with pytest.raises(NetworkFailure):
        generator.generate("A cat.")


def test_huggingface_json_instead_of_image_is_malformed():
    generator, _ = hf_generator(FakeResponse(200, {"generated": "?"}))
    with pytest.raises(MalformedResponse):
        generator.generate("A cat.")


def test_huggingface_transport_error_is_network_failure():
    generator, _ = hf_generator(requests.ConnectionError("offline"))
    with pytest.raises(NetworkFailure):
        generator.generate("A cat.")


def test_provider_is_chosen_by_configuration():
    models = ModelConfig(image_provider="huggingface")
    generator = ImageGenerator(models, APIConfig())
    assert isinstance(generator.provider, HuggingFaceImageProvider)


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        ModelConfig(image_provider="midjourney")
