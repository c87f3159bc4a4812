from types import SimpleNamespace

import httpx
import pytest
from supabase import AuthApiError, PostgrestAPIError

from vocora.core.config import StoreConfig
from vocora.core.errors import MalformedResponse, NetworkFailure
from vocora.core.vocab_store import (MemoryVocabularyStore, StaticIdentity, SupabaseIdentity,
                                     SupabaseVocabularyStore, build_identity, build_store)

SUPABASE = StoreConfig(backend="supabase", supabase_url="https://proj.supabase.test", supabase_key="anon")


class FakeQuery:
    """Records the query builder chain and answers execute() with canned rows"""

    def __init__(self, client, table):
        self.client = client
        self.steps = [("table", table)]
        client.queries.append(self)

    def __getattr__(self, name):
        def step(*args, **kwargs):
            self.steps.append((name, args))
            return self
        return step

    def execute(self):
        if isinstance(self.client.result, Exception):
            raise self.client.result
        return SimpleNamespace(data=self.client.result)


class FakeClient:
    def __init__(self, result=None, options=None):
        self.result = [] if result is None else result
        self.options = options
        self.queries = []

    def table(self, name):
        return FakeQuery(self, name)


class FakeConnect:
    """Stands in for supabase.create_client; every client shares one canned result"""

    def __init__(self, result=None):
        self.result = result
        self.clients = []

    def __call__(self, url, key, options=None):
        client = FakeClient(self.result, options)
        self.clients.append(client)
        return client


def test_memory_store_keeps_insertion_order_per_user():
    store = MemoryVocabularyStore()
    store.add_word("u1", "river")
    store.add_word("u1", "apple")
    store.add_word("u2", "cat")
    assert store.list_words("u1") == ["river", "apple"]
    assert store.list_words("u2") == ["cat"]


def test_anonymous_users_share_one_list():
    store = MemoryVocabularyStore(initial={"shared": ["hello"]})
    store.add_word(None, "world")
    assert store.list_words() == ["hello", "world"]
    assert store.list_words("u1") == []


def test_supabase_list_words_query():
    connect = FakeConnect([{"text": "apple"}, {"text": "run"}])
    store = SupabaseVocabularyStore(SUPABASE, connect=connect)
    assert store.list_words("u1") == ["apple", "run"]

    query = connect.clients[0].queries[0]
    assert query.steps == [
        ("table", "messages"),
        ("select", ("text",)),
        ("eq", ("user_id", "u1")),
        ("order", ("id",)),
    ]


def test_supabase_list_words_falls_back_to_shared_identity():
    connect = FakeConnect()
    SupabaseVocabularyStore(SUPABASE, connect=connect).list_words(None)
    assert ("eq", ("user_id", "shared")) in connect.clients[0].queries[0].steps


def test_supabase_queries_run_as_the_signed_in_user():
    connect = FakeConnect([{"text": "apple"}])
    store = SupabaseVocabularyStore(SUPABASE, connect=connect)

    store.list_words("u1", access_token="jwt-u1")
    store.add_word("u1", "cat", access_token="jwt-u1")

    service_client, *user_clients = connect.clients
    assert service_client.queries == []
    assert len(user_clients) == 2
    assert all(c.options.headers["Authorization"] == "Bearer jwt-u1" for c in user_clients)


@pytest.mark.parametrize("rows", [{"text": "apple"}, [{"word": "apple"}], [{"text": 3}]])
def test_supabase_unexpected_rows_are_malformed(rows):
    store = SupabaseVocabularyStore(SUPABASE, connect=FakeConnect(rows))
    with pytest.raises(MalformedResponse):
        store.list_words("u1")


def test_supabase_add_word_inserts_a_row():
    connect = FakeConnect()
    SupabaseVocabularyStore(SUPABASE, connect=connect).add_word("u1", "cat")
    query = connect.clients[0].queries[0]
    assert query.steps == [("table", "messages"), ("insert", ([{"text": "cat", "user_id": "u1"}],))]


@pytest.mark.parametrize("failure", [
    httpx.ConnectError("offline"),
    PostgrestAPIError({"message": "permission denied", "code": "42501"}),
])
def test_supabase_failures_are_network_failures(failure):
    store = SupabaseVocabularyStore(SUPABASE, connect=FakeConnect(failure))
    with pytest.raises(NetworkFailure):
        store.add_word("u1", "cat")
    with pytest.raises(NetworkFailure):
        store.list_words("u1")


def test_supabase_store_needs_credentials():
    with pytest.raises(ValueError):
        SupabaseVocabularyStore(StoreConfig(backend="supabase"), connect=FakeConnect())


class FakeAuth:
    def __init__(self, answers):
        self.answers = dict(answers)
        self.tokens = []

    def get_user(self, token):
        self.tokens.append(token)
        answer = self.answers[token]
        if isinstance(answer, Exception):
            raise answer
        return answer


def auth_client(**answers):
    return SimpleNamespace(auth=FakeAuth(answers))


def test_identity_resolves_access_tokens():
    client = auth_client(
        good=SimpleNamespace(user=SimpleNamespace(id="user-123", email="a@b.test")),
        expired=AuthApiError("invalid JWT", 401, "bad_jwt"),
    )
    identity = SupabaseIdentity(SUPABASE, client=client)

    assert identity.user_id_for(None) is None
    assert identity.user_id_for("good") == "user-123"
    assert identity.user_id_for("expired") is None
    assert client.auth.tokens == ["good", "expired"]


def test_identity_service_errors_are_network_failures():
    client = auth_client(
        down=AuthApiError("upstream", 502, None),
        offline=httpx.ConnectError("offline"),
    )
    identity = SupabaseIdentity(SUPABASE, client=client)
    with pytest.raises(NetworkFailure):
        identity.user_id_for("down")
    with pytest.raises(NetworkFailure):
        identity.user_id_for("offline")


def test_builders_follow_the_backend():
    assert isinstance(build_store(StoreConfig()), MemoryVocabularyStore)
    assert isinstance(build_store(SUPABASE, connect=FakeConnect()), SupabaseVocabularyStore)
    assert isinstance(build_identity(StoreConfig()), StaticIdentity)
    assert isinstance(build_identity(SUPABASE, client=auth_client()), SupabaseIdentity)
    with pytest.raises(ValueError):
        build_store(StoreConfig(backend="sqlite"))
