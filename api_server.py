#!/usr/bin/env python3
"""
Vocora REST API Server
Provides HTTP endpoints for the web frontend: story and image generation,
definitions, vocabulary lists and story annotation
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from vocora.core.annotator import Annotator, to_html
from vocora.core.config import VocoraConfig, default_config
from vocora.core.dictionary import DictionaryClient
from vocora.core.errors import EmptyInput, NotFound, VocoraError
from vocora.core.images import ImageGenerator
from vocora.core.schemas import (AnnotateRequest, DefinitionEntry, ERROR_ENTRY, ImageRequest,
                                 NOT_FOUND_ENTRY, StoryRequest, WordRequest)
from vocora.core.story import StoryGenerator
from vocora.core.tokenizer import normalize, normalize_words
from vocora.core.vocab_store import VocabularyStore, build_identity, build_store

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Collaborators handed to the API (constructed once per app)"""
    dictionary: DictionaryClient
    story_generator: Optional[StoryGenerator]
    image_generator: Optional[ImageGenerator]
    store: VocabularyStore
    identity: Any


def build_services(config: VocoraConfig) -> Services:
    """Build every collaborator from configuration"""
    story_generator = None
    image_generator = None
    try:
        story_generator = StoryGenerator(config.models, config.api)
    except Exception as e:
        logger.error(f"Story generation unavailable: {e}")
    try:
        image_generator = ImageGenerator(config.models, config.api)
    except Exception as e:
        logger.error(f"Image generation unavailable: {e}")

    return Services(
        dictionary=DictionaryClient(config.api),
        story_generator=story_generator,
        image_generator=image_generator,
        store=build_store(config.store),
        identity=build_identity(config.store)
    )


def _parse(model: type, fallback_error: str):
    """Validate the JSON body against a request model; returns (body, error response)"""
    data = request.get_json(silent=True)
    if data is None:
        return None, (jsonify({"error": fallback_error}), 400)
    try:
        return model.model_validate(data), None
    except ValidationError as e:
        logger.info(f"Rejected {request.path} body: {e.error_count()} validation errors")
        return None, (jsonify({"error": fallback_error}), 400)


def _access_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def create_app(config: Optional[VocoraConfig] = None,
               services: Optional[Services] = None) -> Flask:
    """
    Create the Flask application

    Args:
        config: Settings (the default configuration if omitted)
        services: Collaborators (built from the settings if omitted)
    """
    config = config or default_config
    services = services or build_services(config)

    app = Flask(__name__)
    if config.api.cors_origins:
        CORS(app, origins=config.api.cors_origins)
    else:
        CORS(app)  # Enable CORS for the web frontend

    # Failed lookups raise out of the cached function and are asked again next time
    @lru_cache(maxsize=config.api.definition_cache_size)
    def cached_lookup(word: str) -> DefinitionEntry:
        try:
            return services.dictionary.lookup(word)
        except NotFound:
            return NOT_FOUND_ENTRY

    def cached_define(word: str) -> DefinitionEntry:
        try:
            return cached_lookup(word)
        except VocoraError as e:
            logger.warning(f"Definition lookup for '{word}' failed: {e}")
            return ERROR_ENTRY

    def current_user() -> Tuple[Optional[str], Optional[str]]:
        """User id and the access token to act with (None for anonymous requests)"""
        token = _access_token()
        user_id = services.identity.user_id_for(token)
        return user_id, token if user_id else None

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method Not Allowed"}), 405

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            "status": "healthy",
            "message": "Vocora API is running",
            "story_generation": services.story_generator is not None,
            "image_generation": services.image_generator is not None
        })

    @app.route('/api/generate-story', methods=['POST'])
    def generate_story():
        """Body: { "words": [...] } -> { "story": "..." }"""
        body, error = _parse(StoryRequest, "No words provided")
        if error:
            return error
        if services.story_generator is None:
            return jsonify({"error": "Story generation is not configured"}), 503

        try:
            story = services.story_generator.generate(body.words)
        except EmptyInput:
            return jsonify({"error": "No words provided"}), 400
        except VocoraError as e:
            logger.error(f"Error generating story: {e}")
            return jsonify({"error": "Failed to generate story"}), 500

        return jsonify({"story": story})

    @app.route('/api/generate-image', methods=['POST'])
    def generate_image():
        """Body: { "story": "..." } -> { "imageUrl": "..." }"""
        body, error = _parse(ImageRequest, "No story provided")
        if error:
            return error
        if services.image_generator is None:
            return jsonify({"error": "Image generation is not configured"}), 503

        try:
            image_url = services.image_generator.generate(body.story)
        except EmptyInput:
            return jsonify({"error": "No story provided"}), 400
        except VocoraError as e:
            logger.error(f"Error generating image: {e}")
            return jsonify({"error": "Failed to generate image"}), 500

        return jsonify({"imageUrl": image_url})

    @app.route('/api/define/<word>', methods=['GET'])
    def define(word: str):
        """Definition of a single word, or a sentinel entry"""
        norm = normalize(word)
        if not norm:
            return jsonify({"error": "No word provided"}), 400

        entry = cached_define(norm)

        status = {"found": 200, "not_found": 404}.get(entry.status, 500)
        return jsonify({"word": norm, **entry.to_dict()}), status

    @app.route('/api/words', methods=['GET'])
    def list_words():
        """Vocabulary list of the current (or shared) user"""
        try:
            user_id, token = current_user()
            words = services.store.list_words(user_id, access_token=token)
        except VocoraError as e:
            logger.error(f"Error fetching words: {e}")
            return jsonify({"error": "Failed to load words"}), 500
        return jsonify({"words": words})

    @app.route('/api/words', methods=['POST'])
    def add_word():
        """Body: { "word": "..." }; duplicates are not added twice"""
        body, error = _parse(WordRequest, "No word provided")
        if error:
            return error
        norm = normalize(body.word)
        if not norm:
            return jsonify({"error": "No word provided"}), 400

        try:
            user_id, token = current_user()
            words = services.store.list_words(user_id, access_token=token)
            added = norm not in normalize_words(words)
            if added:
                services.store.add_word(user_id, norm, access_token=token)
                words.append(norm)
        except VocoraError as e:
            logger.error(f"Error adding word '{norm}': {e}")
            return jsonify({"error": "Failed to add word"}), 500

        return jsonify({"words": words, "added": added}), 201 if added else 200

    @app.route('/api/annotate', methods=['POST'])
    def annotate():
        """
        Body: { "story": "...", "marked": [...], "known": [...], "focus": {"word", "index"} }
        Returns the rendered spans and their HTML
        """
        body, error = _parse(AnnotateRequest, "No story provided")
        if error:
            return error

        annotator = Annotator(lookup=cached_define)
        if body.focus is not None:
            annotator.pointer_enter(body.focus.word, body.focus.index)

        known = normalize_words(body.known) if body.known is not None else None
        spans = annotator.render(body.story, normalize_words(body.marked), known=known)
        return jsonify({
            "spans": [span.to_dict() for span in spans],
            "html": to_html(spans)
        })

    return app


def main():
    config = default_config
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print("Starting Vocora API server...")
    app = create_app(config)
    print(f"\nStarting Flask server on http://localhost:{config.api.port}")
    print("Press Ctrl+C to stop\n")
    app.run(host=config.api.host, port=config.api.port, debug=config.log_level == "DEBUG")


if __name__ == '__main__':
    main()
