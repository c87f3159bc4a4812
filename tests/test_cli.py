from vocora.cli import popover_panel, spans_to_text
from vocora.core.annotator import FocusState, render_spans
from vocora.core.schemas import DefinitionEntry
from vocora.core.tokenizer import tokenize

CAT = DefinitionEntry(definition="A small domesticated feline.", partOfSpeech="noun")


def test_spans_to_text_keeps_story_text_and_highlights():
    spans = render_spans(tokenize("I saw a cat."), {"cat"}, None, {})
    text = spans_to_text(spans)
    assert text.plain == "I saw a cat."
    styled = [text.plain[s.start:s.end] for s in text.spans if "yellow" in str(s.style)]
    assert styled == ["cat"]


def test_popover_panel_only_when_focused():
    tokens = tokenize("I saw a cat.")
    assert popover_panel(render_spans(tokens, set(), None, {"cat": CAT})) is None

    panel = popover_panel(render_spans(tokens, set(), FocusState("cat", 6), {"cat": CAT}))
    assert "cat" in panel.title
    assert "A small domesticated feline." in panel.renderable
