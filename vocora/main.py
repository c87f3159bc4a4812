#!/usr/bin/env python3
"""
Vocora Practice Page - Streamlit UI Entry Point
Generate a story from your words, illustrate it, and look up any word in it
"""

import logging
import os
import weakref
from concurrent.futures import ThreadPoolExecutor

import streamlit as st

from vocora.core.annotator import Annotator
from vocora.core.config import default_config
from vocora.core.dictionary import DictionaryClient
from vocora.core.images import ImageGenerator
from vocora.core.practice import PracticeSession
from vocora.core.story import StoryGenerator
from vocora.core.vocab_store import build_store

logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Vocora Practice",
    page_icon="🦉",
    layout="centered"
)

st.markdown("""
<style>
    .story {
        font-size: 1.15rem;
        line-height: 1.9;
        color: #374151;
    }

    .vocab-word {
        position: relative;
        display: inline-block;
        cursor: pointer;
    }

    .vocab-word:hover {
        text-decoration: underline;
    }

    .vocab-word.highlighted {
        background-color: #fde047;
        border-radius: 3px;
    }

    .vocab-popover {
        position: absolute;
        left: 50%;
        bottom: 100%;
        transform: translateX(-50%);
        width: 12rem;
        margin-bottom: 0.5rem;
        padding: 0.75rem;
        background: #f3f4f6;
        border: 1px solid #d1d5db;
        border-radius: 8px;
        box-shadow: 0 4px 12px rgba(0, 0, 0, 0.15);
        font-size: 0.85rem;
        line-height: 1.3;
        z-index: 10;
    }

    .vocab-popover span {
        display: block;
    }

    .popover-word { font-weight: 700; color: #000; }
    .popover-pos { font-style: italic; color: #6b7280; }
    .popover-definition { color: #374151; }
    .popover-add { display: none; }
</style>
""", unsafe_allow_html=True)


def init_session() -> PracticeSession:
    """Build the practice session and its collaborators once per browser session"""
    config = default_config
    story_generator = None
    image_generator = None
    try:
        story_generator = StoryGenerator(config.models, config.api)
    except Exception as e:
        st.warning(f"Story generation unavailable: {e}")
    try:
        image_generator = ImageGenerator(config.models, config.api)
    except Exception as e:
        st.warning(f"Image generation unavailable: {e}")

    dictionary = DictionaryClient(config.api)
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="vocora-define")
    session = PracticeSession(
        store=build_store(config.store),
        story_generator=story_generator,
        image_generator=image_generator,
        annotator=Annotator(lookup=dictionary.define, executor=executor),
        user_id=os.getenv("VOCORA_USER_ID")
    )
    # Streamlit drops the state of closed browser sessions; stop their workers with it
    weakref.finalize(session, executor.shutdown, wait=False, cancel_futures=True)
    session.load_words()
    return session


# Initialize session state with proper defaults
if 'practice' not in st.session_state:
    st.session_state.practice = init_session()
if 'highlight_mode' not in st.session_state:
    st.session_state.highlight_mode = "selected"

practice: PracticeSession = st.session_state.practice

st.title("🦉 Practice")

# Sidebar - word list
with st.sidebar:
    st.header("Your Words")
    if practice.words:
        st.markdown(", ".join(practice.words))
    else:
        st.caption("No words yet.")

    new_word = st.text_input("Add a word", key="new_word")
    if st.button("Add", use_container_width=True) and new_word:
        if practice.add_word(new_word):
            st.rerun()
        elif not practice.message:
            st.info("That word is already on your list.")

    if st.button("Reload list", use_container_width=True):
        practice.load_words()
        st.rerun()

    if st.button("Start over", use_container_width=True):
        practice.close()
        del st.session_state.practice
        st.rerun()

# Selection and generation
practice.selected = st.multiselect(
    "Words for your story",
    options=practice.words,
    default=[w for w in practice.selected if w in practice.words]
)

col1, col2, col3 = st.columns(3)

with col1:
    if st.button("Generate Story", use_container_width=True):
        with st.spinner("Generating..."):
            practice.generate_story()

with col2:
    if st.button("Practice All Words", use_container_width=True):
        with st.spinner("Generating..."):
            practice.practice_all()

with col3:
    if st.button("Generate Image", use_container_width=True, disabled=not practice.story):
        with st.spinner("Painting..."):
            practice.generate_image()

if practice.message:
    st.error(practice.message)

# Story
if practice.story:
    st.subheader("Generated Story")

    st.session_state.highlight_mode = st.radio(
        "Highlight",
        options=["selected", "known"],
        format_func=lambda m: "Story words" if m == "selected" else "Words on my list",
        horizontal=True,
        index=0 if st.session_state.highlight_mode == "selected" else 1
    )

    spans = practice.render_story(st.session_state.highlight_mode)
    interactive = [s for s in spans if s.interactive]

    # Streamlit cannot observe pointer events, so focus follows this picker
    choice = st.selectbox(
        "Look up a word",
        options=[None] + [s.index for s in interactive],
        format_func=lambda i: "(none)" if i is None else next(s.text for s in interactive if s.index == i)
    )

    focus = practice.annotator.focus
    if choice is None and focus is not None:
        practice.leave(focus.word, focus.index)
    elif choice is not None:
        span = next(s for s in interactive if s.index == choice)
        practice.hover(span.text, span.index)

    story_html = practice.render_story_html(st.session_state.highlight_mode)
    st.markdown(f'<p class="story">{story_html}</p>', unsafe_allow_html=True)

    focus = practice.annotator.focus
    if focus is not None:
        if practice.annotator.is_pending(focus.word):
            st.caption("Looking up definition...")
            if st.button("Refresh"):
                st.rerun()
        elif focus.word not in practice.known:
            if st.button(f"Add '{focus.word}' to my list"):
                if practice.add_focused_word():
                    st.success(f"Added '{focus.word}'")

if practice.image_url:
    st.image(practice.image_url, caption="Story illustration", use_container_width=True)
