"""
Vocora Practice Session
Owns the state behind the practice view: the vocabulary list, the word
selection, the generated story and image, and the annotator
"""

import logging
from typing import List, Optional

from .annotator import Annotator, RenderedSpan, to_html
from .errors import EmptyInput, VocoraError
from .images import ImageGenerator
from .story import StoryGenerator, clean_selection
from .tokenizer import normalize, normalize_words
from .vocab_store import VocabularyStore

logger = logging.getLogger(__name__)

NO_WORDS_MESSAGE = "No words available to practice."
NO_SELECTION_MESSAGE = "Select at least one word to generate a story."
NO_STORY_MESSAGE = "Generate a story before creating an image."


class PracticeSession:
    """
    Single owner of practice view state; every service failure ends up in
    `message` instead of propagating
    """

    def __init__(self,
                 store: VocabularyStore,
                 story_generator: Optional[StoryGenerator],
                 image_generator: Optional[ImageGenerator],
                 annotator: Annotator,
                 user_id: Optional[str] = None):
        self.store = store
        self.story_generator = story_generator
        self.image_generator = image_generator
        self.annotator = annotator
        self.user_id = user_id

        self.words: List[str] = []
        self.selected: List[str] = []
        self.story: str = ""
        self.story_words: List[str] = []
        self.image_url: Optional[str] = None
        self.message: Optional[str] = None

    # Vocabulary list

    def load_words(self) -> List[str]:
        """Fetch the user's vocabulary list"""
        try:
            self.words = self.store.list_words(self.user_id)
            self.message = None
        except VocoraError as e:
            logger.error(f"Error fetching words: {e}")
            self.message = "Could not load your words."
        return self.words

    @property
    def known(self) -> set:
        return normalize_words(self.words)

    def add_word(self, word: str) -> bool:
        """Append a word to the vocabulary list unless it is already there"""
        self.message = None
        norm = normalize(word)
        if not norm or norm in self.known:
            return False

        try:
            self.store.add_word(self.user_id, norm)
        except VocoraError as e:
            logger.error(f"Error adding word '{norm}': {e}")
            self.message = f"Could not add '{norm}'."
            return False

        self.words.append(norm)
        return True

    def add_focused_word(self) -> bool:
        """Add the currently hovered word to the vocabulary list"""
        focus = self.annotator.focus
        if focus is None:
            return False
        return self.add_word(focus.word)

    # Selection

    def select(self, word: str) -> None:
        if normalize(word) and normalize(word) not in normalize_words(self.selected):
            self.selected.append(word)

    def deselect(self, word: str) -> None:
        norm = normalize(word)
        self.selected = [w for w in self.selected if normalize(w) != norm]

    def clear_selection(self) -> None:
        self.selected = []

    # Generation

    def generate_story(self, words: Optional[List[str]] = None) -> Optional[str]:
        """
        Generate a story from the selection (or the given words)

        An empty selection never reaches the story service; the user gets a
        prompt in `message` instead.
        """
        selection = clean_selection(self.selected if words is None else words)
        if not selection:
            self.message = NO_SELECTION_MESSAGE
            return None
        if self.story_generator is None:
            self.message = "Story generation is not configured."
            return None

        try:
            story = self.story_generator.generate(selection)
        except EmptyInput:
            self.message = NO_SELECTION_MESSAGE
            return None
        except VocoraError as e:
            logger.error(f"Error generating story: {e}")
            self.message = "Failed to generate story."
            return None

        self.annotator.reset()
        self.story = story
        self.story_words = selection
        self.image_url = None
        self.message = None
        return story

    def practice_all(self) -> Optional[str]:
        """Generate a story that uses the whole vocabulary list"""
        if not self.words:
            self.message = NO_WORDS_MESSAGE
            return None
        return self.generate_story(self.words)

    def generate_image(self) -> Optional[str]:
        """Illustrate the current story"""
        if not self.story.strip():
            self.message = NO_STORY_MESSAGE
            return None
        if self.image_generator is None:
            self.message = "Image generation is not configured."
            return None

        try:
            self.image_url = self.image_generator.generate(self.story)
        except VocoraError as e:
            logger.error(f"Error generating image: {e}")
            self.message = "Failed to generate image."
            return None

        self.message = None
        return self.image_url

    # Hover

    def hover(self, token_text: str, index: int) -> None:
        self.annotator.pointer_enter(token_text, index)

    def leave(self, token_text: str, index: int) -> None:
        self.annotator.pointer_leave(token_text, index)

    # Rendering

    def render_story(self, mark: str = "selected") -> List[RenderedSpan]:
        """
        Render the current story

        Args:
            mark: "selected" highlights the words the story was generated
                from; "known" highlights words already in the vocabulary
        """
        if mark == "selected":
            marked = normalize_words(self.story_words)
        elif mark == "known":
            marked = self.known
        else:
            raise ValueError(f"Unknown highlight mode: {mark}")

        self.annotator.collect()
        return self.annotator.render(self.story, marked, known=self.known)

    def render_story_html(self, mark: str = "selected") -> str:
        return to_html(self.render_story(mark))

    def render_word_list(self) -> List[RenderedSpan]:
        """Render the vocabulary list as a comma separated, hoverable line"""
        self.annotator.collect()
        return self.annotator.render(", ".join(self.words), set(), known=self.known)

    def close(self) -> None:
        """Drop transient focus and stop background lookups when the view goes away"""
        self.annotator.close()
