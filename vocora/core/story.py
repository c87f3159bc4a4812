"""
Vocora Story Generator
Asks a language model for a short practice story that uses the selected words
"""

import logging
from typing import List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from .config import APIConfig, ModelConfig
from .errors import EmptyInput, MalformedResponse, NetworkFailure

logger = logging.getLogger(__name__)

STORY_PROMPT = """You are a friendly language tutor writing practice material for a learner.
Write a short, simple story of about {sentences} sentences.
The story must use every one of the following vocabulary words at least once, in their given form:
{words}

Use everyday language around the vocabulary words. Reply with the story text only, without a title.

Story:"""


def clean_selection(words: List[str]) -> List[str]:
    """Strip blanks and duplicates from a word selection, keeping order"""
    seen = set()
    result = []
    for word in words:
        word = (word or "").strip()
        if word and word.lower() not in seen:
            seen.add(word.lower())
            result.append(word)
    return result


class StoryGenerator:
    """
    Generates practice stories through a LangChain chat model
    """

    def __init__(self,
                 models: Optional[ModelConfig] = None,
                 api: Optional[APIConfig] = None,
                 llm=None):
        """
        Initialize story generator

        Args:
            models: Model selection settings
            api: Credentials and timeouts
            llm: Ready-made LangChain model (built from the settings if omitted)
        """
        self.models = models or ModelConfig()
        self.api = api or APIConfig()
        self.llm = llm if llm is not None else self._init_llm()

        prompt = PromptTemplate(
            template=STORY_PROMPT,
            input_variables=["sentences", "words"]
        )
        self.chain = prompt | self.llm | StrOutputParser()

    def _init_llm(self):
        """Initialize language model"""
        if self.models.story_provider == "openai":
            logger.info(f"Using OpenAI {self.models.openai_model} for stories")
            return ChatOpenAI(
                model=self.models.openai_model,
                temperature=self.models.story_temperature,
                max_tokens=self.models.story_max_tokens,
                timeout=self.api.llm_timeout,
                api_key=self.api.openai_api_key
            )
        elif self.models.story_provider == "ollama":
            from langchain_community.llms import Ollama

            logger.info(f"Using Ollama {self.models.ollama_model} for stories")
            return Ollama(
                model=self.models.ollama_model,
                temperature=self.models.story_temperature
            )
        else:
            raise ValueError(f"Unknown story provider: {self.models.story_provider}")

    def generate(self, words: List[str]) -> str:
        """
        Generate a story that uses the given words

        Args:
            words: Selected vocabulary words

        Returns:
            Story text

        Raises:
            EmptyInput: no usable word was selected
            NetworkFailure: the model call failed
            MalformedResponse: the model returned no text
        """
        selection = clean_selection(words)
        if not selection:
            raise EmptyInput("Select at least one word to generate a story.")

        logger.info(f"Generating story for {len(selection)} words")
        try:
            story = self.chain.invoke({
                "sentences": self.models.story_sentences,
                "words": ", ".join(selection)
            })
        except Exception as e:
            logger.error(f"Story generation failed: {e}")
            raise NetworkFailure(f"Story generation failed: {e}") from e

        if not isinstance(story, str) or not story.strip():
            raise MalformedResponse("Story generation returned no text")

        return story.strip()
