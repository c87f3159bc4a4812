"""
Vocora Image Generator
Illustrates a story through a configurable text-to-image provider
"""

import base64
import logging
from typing import Optional

import requests
from openai import OpenAI, OpenAIError

from .config import APIConfig, ModelConfig
from .errors import EmptyInput, MalformedResponse, NetworkFailure

logger = logging.getLogger(__name__)


class OpenAIImageProvider:
    """DALL·E image generation; answers with a hosted image URL"""

    name = "openai"

    def __init__(self, models: ModelConfig, api: APIConfig, client: Optional[OpenAI] = None):
        self.models = models
        self.client = client if client is not None else OpenAI(
            api_key=api.openai_api_key, timeout=api.llm_timeout
        )

    def generate(self, story: str) -> str:
        try:
            response = self.client.images.generate(
                model=self.models.openai_image_model,
                prompt=story,
                size=self.models.image_size,
                n=1
            )
        except OpenAIError as e:
            raise NetworkFailure(f"OpenAI image generation failed: {e}") from e

        data = getattr(response, "data", None)
        if not data:
            raise MalformedResponse("OpenAI image response contained no images")

        image = data[0]
        if getattr(image, "url", None):
            return image.url
        if getattr(image, "b64_json", None):
            return f"data:image/png;base64,{image.b64_json}"
        raise MalformedResponse("OpenAI image response contained neither url nor b64_json")


class HuggingFaceImageProvider:
    """Hugging Face Inference API; answers with an embedded data URI"""

    name = "huggingface"

    def __init__(self, models: ModelConfig, api: APIConfig, session: Optional[requests.Session] = None):
        self.models = models
        self.api = api
        self.session = session or requests.Session()

    def generate(self, story: str) -> str:
        url = f"{self.api.huggingface_url.rstrip('/')}/{self.models.huggingface_image_model}"
        headers = {"Accept": "image/png"}
        if self.api.huggingface_token:
            headers["Authorization"] = f"Bearer {self.api.huggingface_token}"

        try:
            response = self.session.post(
                url, json={"inputs": story}, headers=headers, timeout=self.api.llm_timeout
            )
        except requests.RequestException as e:
            raise NetworkFailure(f"Hugging Face request failed: {e}") from e

        content_type = response.headers.get("content-type", "").lower()
        if response.status_code >= 400:
            raise NetworkFailure(f"Hugging Face answered {response.status_code}: {response.text[:200]}")

        if not content_type.startswith("image/"):
            raise MalformedResponse(f"Hugging Face returned {content_type or 'no content type'} instead of an image")
        if not response.content:
            raise MalformedResponse("Hugging Face returned an empty image")

        mime = content_type.split(";")[0].strip()
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{mime};base64,{encoded}"


PROVIDERS = {
    OpenAIImageProvider.name: OpenAIImageProvider,
    HuggingFaceImageProvider.name: HuggingFaceImageProvider,
}


class ImageGenerator:
    """
    Single entry point for story illustrations, whichever provider is configured
    """

    def __init__(self,
                 models: Optional[ModelConfig] = None,
                 api: Optional[APIConfig] = None,
                 provider=None):
        """
        Initialize image generator

        Args:
            models: Provider and model selection
            api: Credentials, endpoints and timeouts
            provider: Ready-made provider (built from the settings if omitted)
        """
        self.models = models or ModelConfig()
        self.api = api or APIConfig()
        if provider is None:
            provider_cls = PROVIDERS.get(self.models.image_provider)
            if provider_cls is None:
                raise ValueError(f"Unknown image provider: {self.models.image_provider}")
            provider = provider_cls(self.models, self.api)
        self.provider = provider
        logger.info(f"Image provider: {getattr(provider, 'name', type(provider).__name__)}")

    def generate(self, story: str) -> str:
        """
        Generate an illustration for a story

        Returns:
            Image URL or base64 data URI

        Raises:
            EmptyInput: the story is empty
            NetworkFailure / MalformedResponse: the provider failed
        """
        if not story or not story.strip():
            raise EmptyInput("No story provided")

        logger.info(f"Generating image for a {len(story)}-character story")
        return self.provider.generate(story.strip())
