"""
Vocora Vocabulary Store
Per-user word lists kept in a hosted table, plus the identity lookup that scopes them
"""

import logging
from typing import Callable, Dict, List, Optional

import httpx
from supabase import AuthApiError, AuthError, Client, ClientOptions, PostgrestAPIError, create_client

from .config import StoreConfig
from .errors import MalformedResponse, NetworkFailure

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Client]


class VocabularyStore:
    """Interface shared by the vocabulary backends"""

    def __init__(self, config: Optional[StoreConfig] = None):
        self.config = config or StoreConfig()

    def owner(self, user_id: Optional[str]) -> str:
        """User id to read and write with; anonymous users share one list"""
        return user_id or self.config.shared_user_id

    def list_words(self, user_id: Optional[str] = None, access_token: Optional[str] = None) -> List[str]:
        raise NotImplementedError

    def add_word(self, user_id: Optional[str], word: str, access_token: Optional[str] = None) -> None:
        raise NotImplementedError


class MemoryVocabularyStore(VocabularyStore):
    """In-memory word lists (useful for tests or local runs)"""

    def __init__(self, config: Optional[StoreConfig] = None,
                 initial: Optional[Dict[str, List[str]]] = None):
        super().__init__(config)
        self._rows: Dict[str, List[str]] = {k: list(v) for k, v in (initial or {}).items()}

    def list_words(self, user_id: Optional[str] = None, access_token: Optional[str] = None) -> List[str]:
        return list(self._rows.get(self.owner(user_id), []))

    def add_word(self, user_id: Optional[str], word: str, access_token: Optional[str] = None) -> None:
        self._rows.setdefault(self.owner(user_id), []).append(word)


def _require_credentials(config: StoreConfig) -> None:
    if not config.supabase_url or not config.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")


class SupabaseVocabularyStore(VocabularyStore):
    """Word lists in a Supabase table"""

    def __init__(self, config: Optional[StoreConfig] = None,
                 connect: ClientFactory = create_client):
        """
        Initialize the store

        Args:
            config: Table, column and project settings
            connect: Builds a client from url, key and options (``create_client``)
        """
        super().__init__(config)
        _require_credentials(self.config)
        self.connect = connect
        self.client = connect(self.config.supabase_url, self.config.supabase_key)

    def _client_for(self, access_token: Optional[str]) -> Client:
        """Client acting as the signed-in user, so row-level security applies"""
        if not access_token:
            return self.client
        options = ClientOptions(headers={"Authorization": f"Bearer {access_token}"})
        return self.connect(self.config.supabase_url, self.config.supabase_key, options=options)

    def list_words(self, user_id: Optional[str] = None, access_token: Optional[str] = None) -> List[str]:
        column = self.config.word_column
        query = (
            self._client_for(access_token)
            .table(self.config.table)
            .select(column)
            .eq(self.config.user_column, self.owner(user_id))
            .order(self.config.order_column)
        )
        try:
            response = query.execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise NetworkFailure(f"Could not read vocabulary: {e}") from e

        rows = response.data
        if not isinstance(rows, list):
            raise MalformedResponse("Vocabulary response is not a list of rows")

        words = []
        for row in rows:
            if not isinstance(row, dict) or not isinstance(row.get(column), str):
                raise MalformedResponse(f"Vocabulary row without a '{column}' string: {row!r}")
            words.append(row[column])
        return words

    def add_word(self, user_id: Optional[str], word: str, access_token: Optional[str] = None) -> None:
        row = {
            self.config.word_column: word,
            self.config.user_column: self.owner(user_id)
        }
        try:
            self._client_for(access_token).table(self.config.table).insert([row]).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise NetworkFailure(f"Could not save '{word}': {e}") from e
        logger.info(f"Added '{word}' to the vocabulary of {self.owner(user_id)}")


class StaticIdentity:
    """Identity collaborator that always answers with the same user"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    def user_id_for(self, access_token: Optional[str] = None) -> Optional[str]:
        return self.user_id


class SupabaseIdentity:
    """Resolves Supabase access tokens to user ids"""

    def __init__(self, config: StoreConfig, client: Optional[Client] = None):
        _require_credentials(config)
        self.config = config
        self.client = client if client is not None else create_client(config.supabase_url, config.supabase_key)

    def user_id_for(self, access_token: Optional[str] = None) -> Optional[str]:
        """
        Look up the user behind an access token

        Returns:
            User id, or None for a missing or rejected token
        """
        if not access_token:
            return None

        try:
            response = self.client.auth.get_user(access_token)
        except AuthApiError as e:
            if e.status in (401, 403):
                logger.info("Rejected access token; continuing as anonymous")
                return None
            raise NetworkFailure(f"Auth service answered {e.status}: {e}") from e
        except (AuthError, httpx.HTTPError) as e:
            raise NetworkFailure(f"Could not resolve session: {e}") from e

        user = getattr(response, "user", None) if response else None
        if user is None:
            return None
        if not isinstance(getattr(user, "id", None), str):
            raise MalformedResponse("Auth response has no user id")
        return user.id


def build_store(config: StoreConfig, connect: ClientFactory = create_client) -> VocabularyStore:
    """Create the configured vocabulary backend"""
    if config.backend == "supabase":
        return SupabaseVocabularyStore(config, connect=connect)
    if config.backend == "memory":
        return MemoryVocabularyStore(config)
    raise ValueError(f"Unknown vocabulary backend: {config.backend}")


def build_identity(config: StoreConfig, client: Optional[Client] = None):
    """Create the identity collaborator matching the store backend"""
    if config.backend == "supabase":
        return SupabaseIdentity(config, client=client)
    return StaticIdentity()
