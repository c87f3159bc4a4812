"""
Vocora Dictionary Client
Looks up definitions for single words against a free dictionary service
"""

import logging
from typing import List, Optional
from urllib.parse import quote

import requests
from pydantic import TypeAdapter, ValidationError

from .config import APIConfig
from .errors import MalformedResponse, NetworkFailure, NotFound, VocoraError
from .schemas import DefinitionEntry, DictionaryResult, ERROR_ENTRY, NOT_FOUND_ENTRY
from .tokenizer import normalize

logger = logging.getLogger(__name__)

_RESULTS = TypeAdapter(List[DictionaryResult])


class DictionaryClient:
    """
    Fetches word definitions over HTTP
    """

    def __init__(self,
                 config: Optional[APIConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize dictionary client

        Args:
            config: Endpoint and timeout settings
            session: HTTP session to use (a new one is created if omitted)
        """
        self.config = config or APIConfig()
        self.session = session or requests.Session()
        self.base_url = self.config.dictionary_url.rstrip('/')

    def lookup(self, word: str) -> DefinitionEntry:
        """
        Look up the first definition of a word

        Args:
            word: Word to look up (normalized before the request)

        Returns:
            Definition entry taken from the first meaning of the first result

        Raises:
            NotFound: the service knows no such word
            NetworkFailure: the service could not be reached
            MalformedResponse: the payload did not have the expected shape
        """
        norm = normalize(word)
        if not norm:
            raise NotFound(f"Nothing to look up in {word!r}")

        url = f"{self.base_url}/{quote(norm)}"
        try:
            response = self.session.get(url, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise NetworkFailure(f"Dictionary request failed for '{norm}': {e}") from e

        if response.status_code == 404:
            raise NotFound(f"No definitions found for '{norm}'")
        if response.status_code >= 400:
            raise NetworkFailure(f"Dictionary service answered {response.status_code} for '{norm}'")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Dictionary response for '{norm}' is not JSON") from e

        return parse_dictionary_payload(norm, payload)

    def define(self, word: str) -> DefinitionEntry:
        """Look up a word, converting any failure into a sentinel entry"""
        try:
            return self.lookup(word)
        except NotFound:
            logger.info(f"No definition for '{word}'")
            return NOT_FOUND_ENTRY
        except VocoraError as e:
            logger.warning(f"Definition lookup failed for '{word}': {e}")
            return ERROR_ENTRY


def parse_dictionary_payload(word: str, payload) -> DefinitionEntry:
    """
    Extract the first meaning's first definition from a dictionary payload

    An empty array means the word is unknown; anything that is not a list
    of results with meanings is malformed.
    """
    if isinstance(payload, list) and not payload:
        raise NotFound(f"No definitions found for '{word}'")

    try:
        results = _RESULTS.validate_python(payload)
    except ValidationError as e:
        raise MalformedResponse(f"Unexpected dictionary payload for '{word}': {e.error_count()} errors") from e

    first = results[0]
    if not first.meanings or not first.meanings[0].definitions:
        raise NotFound(f"No definitions found for '{word}'")

    meaning = first.meanings[0]
    return DefinitionEntry(
        definition=meaning.definitions[0].definition,
        partOfSpeech=meaning.part_of_speech
    )
