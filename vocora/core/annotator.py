"""
Vocora Annotator
Highlights vocabulary inside generated stories and tracks hover focus with
lazily looked-up dictionary definitions
"""

import html
import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from types import MappingProxyType
from typing import AbstractSet, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import NotFound
from .schemas import DefinitionEntry, ERROR_ENTRY, NOT_FOUND_ENTRY
from .tokenizer import Token, is_tracked, normalize, tokenize

logger = logging.getLogger(__name__)

DEFAULT_PART_OF_SPEECH = "noun"
DEFAULT_DEFINITION = "No definition found."


@dataclass(frozen=True)
class FocusState:
    """The single hovered token: normalized word plus token index"""
    word: str
    index: int


@dataclass(frozen=True)
class Popover:
    """Inline definition card shown over the focused token"""
    word: str
    part_of_speech: str
    definition: str
    can_add: bool


@dataclass(frozen=True)
class RenderedSpan:
    """One renderable piece of an annotated story"""
    text: str
    index: int
    word: str = ""
    interactive: bool = False
    highlighted: bool = False
    popover: Optional[Popover] = None

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "index": self.index,
            "word": self.word,
            "interactive": self.interactive,
            "highlighted": self.highlighted,
            "popover": None
        }
        if self.popover:
            data["popover"] = {
                "word": self.popover.word,
                "partOfSpeech": self.popover.part_of_speech,
                "definition": self.popover.definition,
                "canAdd": self.popover.can_add
            }
        return data


def render_spans(tokens: Sequence[Token],
                 marked: AbstractSet[str],
                 focus: Optional[FocusState],
                 definitions: Mapping[str, DefinitionEntry],
                 known: Optional[AbstractSet[str]] = None) -> List[RenderedSpan]:
    """
    Project tokens and the current view state onto renderable spans

    Args:
        tokens: Tokenized story
        marked: Normalized words to highlight
        focus: Currently hovered token, if any
        definitions: Cached definition entries keyed by normalized word
        known: Words already in the vocabulary list (hides "add to list")

    Returns:
        One span per token, in order
    """
    spans = []
    for token in tokens:
        word = normalize(token.text)
        if not word:
            spans.append(RenderedSpan(text=token.text, index=token.index))
            continue

        popover = None
        if focus is not None and focus.word == word and focus.index == token.index:
            entry = definitions.get(word)
            if entry is not None:
                popover = Popover(
                    word=word,
                    part_of_speech=entry.part_of_speech or DEFAULT_PART_OF_SPEECH,
                    definition=entry.definition or DEFAULT_DEFINITION,
                    can_add=not (known is not None and word in known)
                )

        spans.append(RenderedSpan(
            text=token.text,
            index=token.index,
            word=word,
            interactive=True,
            highlighted=is_tracked(word, marked),
            popover=popover
        ))
    return spans


def to_html(spans: Iterable[RenderedSpan]) -> str:
    """Serialize rendered spans to escaped HTML markup"""
    parts = []
    for span in spans:
        text = html.escape(span.text)
        if not span.interactive:
            parts.append(text)
            continue

        classes = "vocab-word highlighted" if span.highlighted else "vocab-word"
        inner = text
        if span.popover:
            pop = span.popover
            inner += (
                '<span class="vocab-popover">'
                f'<span class="popover-word">{html.escape(pop.word)}</span>'
                f'<span class="popover-pos">{html.escape(pop.part_of_speech)}</span>'
                f'<span class="popover-definition">{html.escape(pop.definition)}</span>'
            )
            if pop.can_add:
                inner += f'<button class="popover-add" data-word="{html.escape(pop.word)}">Add to list</button>'
            inner += '</span>'

        parts.append(
            f'<span class="{classes}" data-word="{html.escape(span.word)}" '
            f'data-index="{span.index}">{inner}</span>'
        )
    return "".join(parts)


class Annotator:
    """
    Owns hover focus and the per-session definition cache for a story view
    """

    def __init__(self,
                 lookup: Callable[[str], DefinitionEntry],
                 executor: Optional[Executor] = None):
        """
        Initialize annotator

        Args:
            lookup: Returns the definition entry for a normalized word
            executor: Runs lookups in the background; lookups run inline when omitted
        """
        self.lookup = lookup
        self.executor = executor
        self._focus: Optional[FocusState] = None
        self._definitions: Dict[str, DefinitionEntry] = {}
        self._pending: Dict[str, Future] = {}

    @property
    def focus(self) -> Optional[FocusState]:
        return self._focus

    @property
    def definitions(self) -> Mapping[str, DefinitionEntry]:
        return MappingProxyType(self._definitions)

    def is_pending(self, word: str) -> bool:
        return normalize(word) in self._pending

    def pointer_enter(self, token_text: str, index: int) -> Optional[FocusState]:
        """
        Focus a token, replacing any previous focus

        The first focus of a word without a cached entry or an outstanding
        lookup starts exactly one lookup.
        """
        word = normalize(token_text)
        if not word:
            return self._focus

        self._focus = FocusState(word=word, index=index)
        if word not in self._definitions and word not in self._pending:
            self._request(word)
        return self._focus

    def pointer_leave(self, token_text: str, index: int) -> None:
        """Clear focus if it is on this token"""
        if self._focus == FocusState(word=normalize(token_text), index=index):
            self._focus = None

    def reset(self) -> None:
        """Return to idle; cached definitions are kept"""
        self._focus = None

    def close(self) -> None:
        """Return to idle and stop the background executor; pending lookups are dropped"""
        self._focus = None
        self._pending.clear()
        if self.executor is not None:
            self.executor.shutdown(wait=False, cancel_futures=True)

    def invalidate(self, word: str) -> None:
        """Forget a cached entry so the next focus looks the word up again"""
        self._definitions.pop(normalize(word), None)

    def collect(self) -> int:
        """
        Store results of finished background lookups

        Returns:
            Number of entries stored
        """
        done = [word for word, future in self._pending.items() if future.done()]
        for word in done:
            future = self._pending.pop(word)
            try:
                self._definitions[word] = future.result()
            except NotFound:
                self._definitions[word] = NOT_FOUND_ENTRY
            except Exception as e:
                logger.warning(f"Background lookup for '{word}' failed: {e}")
                self._definitions[word] = ERROR_ENTRY
        return len(done)

    def render(self,
               story: Union[str, Sequence[Token]],
               marked: AbstractSet[str],
               known: Optional[AbstractSet[str]] = None) -> List[RenderedSpan]:
        """Render a story (or its tokens) against the current focus and cache"""
        tokens = tokenize(story) if isinstance(story, str) else story
        return render_spans(tokens, marked, self._focus, self._definitions, known)

    def render_html(self,
                    story: Union[str, Sequence[Token]],
                    marked: AbstractSet[str],
                    known: Optional[AbstractSet[str]] = None) -> str:
        return to_html(self.render(story, marked, known))

    def _request(self, word: str) -> None:
        if self.executor is None:
            self._definitions[word] = self._run_lookup(word)
            return

        logger.debug(f"Submitting definition lookup for '{word}'")
        self._pending[word] = self.executor.submit(self.lookup, word)

    def _run_lookup(self, word: str) -> DefinitionEntry:
        try:
            return self.lookup(word)
        except NotFound:
            return NOT_FOUND_ENTRY
        except Exception as e:
            logger.warning(f"Definition lookup for '{word}' failed: {e}")
            return ERROR_ENTRY
